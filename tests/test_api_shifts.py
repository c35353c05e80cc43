"""Tests for shift, assignment and claim routes."""
from datetime import datetime, timedelta, timezone

from tests.conftest import API, MANAGER, create_shift, employee, shift_payload


class TestShiftRoutes:
    """Test shift creation, lookup and status routes."""

    def test_create_and_get_shift(self, client):
        shift = create_shift(client, max_people=2)

        assert shift["status"] == "open"
        assert shift["version"] == 1
        assert shift["created_by"] == "manager-1"

        response = client.get(f"{API}/shifts/{shift['id']}", headers=employee("user-a"))
        assert response.status_code == 200
        assert response.json()["max_people"] == 2

    def test_create_shift_requires_manager(self, client):
        response = client.post(f"{API}/shifts", json=shift_payload(), headers=employee("user-a"))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_create_shift_invalid_times(self, client):
        payload = shift_payload()
        payload["end_time"] = payload["start_time"]

        response = client.post(f"{API}/shifts", json=payload, headers=MANAGER)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_ARGUMENT"

    def test_missing_actor_unauthorized(self, client):
        response = client.get(f"{API}/shifts")
        assert response.status_code == 401

    def test_get_missing_shift(self, client):
        response = client.get(f"{API}/shifts/missing", headers=MANAGER)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    def test_list_shifts_by_status(self, client):
        open_shift = create_shift(client)
        cancelled = create_shift(client)
        client.post(f"{API}/shifts/{cancelled['id']}/status", json={"status": "cancelled"}, headers=MANAGER)

        response = client.get(f"{API}/shifts", params={"status": "open"}, headers=MANAGER)

        assert [s["id"] for s in response.json()] == [open_shift["id"]]

    def test_illegal_transition(self, client):
        shift = create_shift(client)

        response = client.post(f"{API}/shifts/{shift['id']}/status", json={"status": "completed"}, headers=MANAGER)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

    def test_unrecognized_status_rejected_at_boundary(self, client):
        shift = create_shift(client)

        response = client.post(f"{API}/shifts/{shift['id']}/status", json={"status": "archived"}, headers=MANAGER)

        assert response.status_code == 422

    def test_delete_shift(self, client):
        shift = create_shift(client)

        assert client.delete(f"{API}/shifts/{shift['id']}", headers=MANAGER).status_code == 204
        assert client.get(f"{API}/shifts/{shift['id']}", headers=MANAGER).status_code == 404


class TestAssignmentRoutes:
    """Test assign, respond and unassign routes."""

    def test_assign_and_accept(self, client):
        shift = create_shift(client)

        response = client.post(f"{API}/shifts/{shift['id']}/assign", json={"user_id": "user-a"}, headers=MANAGER)
        assert response.status_code == 201
        assignment = response.json()
        assert assignment["assignment_status"] == "pending"

        mine = client.get(f"{API}/assignments/mine", params={"pending": True}, headers=employee("user-a"))
        assert [a["id"] for a in mine.json()] == [assignment["id"]]

        response = client.post(
            f"{API}/assignments/{assignment['id']}/respond",
            json={"decision": "accept"},
            headers=employee("user-a")
        )
        assert response.status_code == 200
        assert response.json()["assignment_status"] == "accepted"
        assert client.get(f"{API}/shifts/{shift['id']}", headers=MANAGER).json()["status"] == "assigned"

    def test_respond_twice(self, client):
        shift = create_shift(client)
        assignment = client.post(
            f"{API}/shifts/{shift['id']}/assign", json={"user_id": "user-a"}, headers=MANAGER
        ).json()
        url = f"{API}/assignments/{assignment['id']}/respond"
        client.post(url, json={"decision": "decline"}, headers=employee("user-a"))

        response = client.post(url, json={"decision": "accept"}, headers=employee("user-a"))

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ALREADY_RESPONDED"

    def test_respond_after_deadline(self, client):
        shift = create_shift(client)
        deadline = (datetime.now(timezone.utc) - timedelta(seconds=1)).isoformat()
        assignment = client.post(
            f"{API}/shifts/{shift['id']}/assign",
            json={"user_id": "user-a", "deadline": deadline},
            headers=MANAGER
        ).json()

        response = client.post(
            f"{API}/assignments/{assignment['id']}/respond",
            json={"decision": "accept"},
            headers=employee("user-a")
        )

        assert response.status_code == 410
        read = client.get(f"{API}/assignments/{assignment['id']}", headers=employee("user-a"))
        assert read.json()["assignment_status"] == "expired"

    def test_assign_full_shift(self, client):
        shift = create_shift(client)
        url = f"{API}/shifts/{shift['id']}/assign"
        client.post(url, json={"user_id": "user-a", "require_acceptance": False}, headers=MANAGER)

        response = client.post(url, json={"user_id": "user-b"}, headers=MANAGER)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_STATE"

    def test_unassign_then_again(self, client):
        shift = create_shift(client)
        assignment = client.post(
            f"{API}/shifts/{shift['id']}/assign",
            json={"user_id": "user-a", "require_acceptance": False},
            headers=MANAGER
        ).json()
        url = f"{API}/shifts/{shift['id']}/unassign"

        first = client.post(url, json={"assignment_id": assignment["id"]}, headers=MANAGER)
        second = client.post(url, json={"assignment_id": assignment["id"]}, headers=MANAGER)

        assert first.status_code == 200
        assert first.json()["assignment_status"] == "cancelled"
        assert second.status_code == 409

    def test_other_user_cannot_view_assignment(self, client):
        shift = create_shift(client)
        assignment = client.post(
            f"{API}/shifts/{shift['id']}/assign", json={"user_id": "user-a"}, headers=MANAGER
        ).json()

        response = client.get(f"{API}/assignments/{assignment['id']}", headers=employee("user-b"))

        assert response.status_code == 403


class TestClaimRoutes:
    """Test claim and approval routes."""

    def test_second_approval_conflicts(self, client):
        shift = create_shift(client)
        claim_url = f"{API}/shifts/{shift['id']}/claim"
        claim_a = client.post(claim_url, headers=employee("user-a"))
        claim_b = client.post(claim_url, headers=employee("user-b"))
        assert claim_a.status_code == 201
        assert claim_b.status_code == 201

        approved = client.post(f"{API}/claims/{claim_a.json()['id']}/approve", json={"notes": "ok"}, headers=MANAGER)
        conflict = client.post(f"{API}/claims/{claim_b.json()['id']}/approve", headers=MANAGER)

        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert conflict.status_code == 409
        assert conflict.json()["error"]["code"] == "CONFLICT"
        assignments = client.get(f"{API}/shifts/{shift['id']}/assignments", headers=MANAGER).json()
        assert [a["user_id"] for a in assignments] == ["user-a"]

    def test_duplicate_claim(self, client):
        shift = create_shift(client)
        claim_url = f"{API}/shifts/{shift['id']}/claim"
        client.post(claim_url, headers=employee("user-a"))

        response = client.post(claim_url, headers=employee("user-a"))

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_CLAIM"

    def test_claim_missing_shift(self, client):
        response = client.post(f"{API}/shifts/missing/claim", headers=employee("user-a"))
        assert response.status_code == 404

    def test_employee_cannot_approve(self, client):
        shift = create_shift(client)
        claim = client.post(f"{API}/shifts/{shift['id']}/claim", headers=employee("user-a")).json()

        response = client.post(f"{API}/claims/{claim['id']}/approve", headers=employee("user-b"))

        assert response.status_code == 403

    def test_cancel_and_list_mine(self, client):
        shift = create_shift(client)
        claim = client.post(f"{API}/shifts/{shift['id']}/claim", headers=employee("user-a")).json()

        cancelled = client.post(f"{API}/claims/{claim['id']}/cancel", headers=employee("user-a"))
        mine = client.get(f"{API}/claims/mine", headers=employee("user-a"))

        assert cancelled.json()["status"] == "cancelled"
        assert [c["status"] for c in mine.json()] == ["cancelled"]

    def test_reject_and_list_for_shift(self, client):
        shift = create_shift(client)
        claim = client.post(f"{API}/shifts/{shift['id']}/claim", headers=employee("user-a")).json()

        rejected = client.post(f"{API}/claims/{claim['id']}/reject", json={"notes": "no"}, headers=MANAGER)
        listing = client.get(f"{API}/shifts/{shift['id']}/claims", params={"status": "rejected"}, headers=MANAGER)

        assert rejected.json()["approval_notes"] == "no"
        assert [c["id"] for c in listing.json()] == [claim["id"]]
