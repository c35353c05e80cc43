"""Activity events handed to the external activity logger."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging


logger = logging.getLogger("shiftboard.activity")


@dataclass(frozen=True)
class ActivityEvent:
    """One successful state change."""
    entity_type: str
    entity_id: str
    action: str
    actor_id: Optional[str]
    before: Optional[str]
    after: Optional[str]
    occurred_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "actor_id": self.actor_id,
            "before": self.before,
            "after": self.after,
            "occurred_at": self.occurred_at.isoformat(),
            "metadata": self.metadata,
        }


class ActivityLogger:
    """Default sink: writes each event as a structured log record."""

    def emit(self, event: ActivityEvent) -> None:
        logger.info(
            f"{event.entity_type} {event.entity_id} {event.action} "
            f"({event.before} -> {event.after}) by {event.actor_id}",
            extra={"activity": event.to_dict()}
        )

    def emit_all(self, events: List[ActivityEvent]) -> None:
        """
        Emit a batch of events collected during one committed transaction.

        A failing sink is logged and skipped so the committed change is still
        reported to the caller.
        """
        for event in events:
            try:
                self.emit(event)
            except Exception as e:
                logging.getLogger(__name__).warning(
                    f"Failed to log {event.entity_type} activity: {str(e)}"
                )


def _status_value(status) -> Optional[str]:
    if status is None:
        return None
    return getattr(status, "value", status)


class EventBuffer:
    """Collects events inside a transaction; flushed only after commit."""

    def __init__(self, actor_id: Optional[str], now: datetime):
        self.actor_id = actor_id
        self.now = now
        self.events: List[ActivityEvent] = []

    def record(self, entity_type: str, entity_id: str, action: str, before=None, after=None, **metadata) -> None:
        self.events.append(ActivityEvent(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=self.actor_id,
            before=_status_value(before),
            after=_status_value(after),
            occurred_at=self.now,
            metadata=metadata,
        ))
