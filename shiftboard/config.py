"""Application configuration settings."""
from pydantic_settings import BaseSettings
from typing import List, Optional, Tuple


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "sqlite"
    db_password: str = ""
    db_name: str = "shiftboard"
    db_pool_recycle: int = 3600

    # Application Settings
    debug: bool = False
    log_level: str = "INFO"
    api_prefix: str = "/api"

    # Assignment workflow
    assignment_requires_acceptance: bool = True
    default_acceptance_hours: Optional[int] = None

    # Claims
    claim_cutoff_hours: int = 2

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_general_requests: int = 100
    rate_limit_general_window: int = 60
    rate_limit_sensitive_requests: int = 20
    rate_limit_sensitive_window: int = 60
    rate_limit_admin_requests: int = 50
    rate_limit_admin_window: int = 60
    rate_limit_login_requests: int = 5
    rate_limit_login_window: int = 60
    rate_limit_max_buckets: int = 10000
    rate_limit_shards: int = 16

    # Scheduler Settings
    scheduler_enabled: bool = False
    maintenance_interval_seconds: int = 300

    # CORS Settings
    cors_origins: List[str] = []

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def database_url(self) -> str:
        """Construct database URL from configuration."""
        # Use SQLite if DB_USER is 'sqlite'
        if self.db_user.lower() == 'sqlite':
            return f"sqlite:///./{self.db_name}.db"
        return f"mysql+pymysql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    def rate_limit_for(self, route_class: str) -> Tuple[int, int]:
        """
        Get the (limit, window seconds) pair configured for a route class.

        Raises:
            ValueError: If the route class is not configured
        """
        try:
            limit = getattr(self, f"rate_limit_{route_class}_requests")
            window = getattr(self, f"rate_limit_{route_class}_window")
        except AttributeError:
            raise ValueError(f"Unknown rate limit route class: {route_class}")
        return limit, window


# Global settings instance
settings = Settings()
