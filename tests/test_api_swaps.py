"""Tests for swap request routes."""
import pytest

from tests.conftest import API, MANAGER, create_shift, employee


@pytest.fixture
def held(client):
    """user-a holds the first shift and user-b the second."""
    first = create_shift(client)
    second = create_shift(client)
    for shift, user in ((first, "user-a"), (second, "user-b")):
        response = client.post(
            f"{API}/shifts/{shift['id']}/assign",
            json={"user_id": user, "require_acceptance": False},
            headers=MANAGER
        )
        assert response.status_code == 201
    return first["id"], second["id"]


def holders(client, shift_id):
    assignments = client.get(f"{API}/shifts/{shift_id}/assignments", headers=MANAGER).json()
    return [a["user_id"] for a in assignments if a["assignment_status"] == "accepted"]


class TestSwapRoutes:
    """Test the swap request flow end to end."""

    def test_full_exchange(self, client, held):
        first_id, second_id = held
        proposed = client.post(
            f"{API}/swaps",
            json={"origin_shift_id": first_id, "target_user_id": "user-b", "target_shift_id": second_id},
            headers=employee("user-a")
        )
        assert proposed.status_code == 201
        swap_id = proposed.json()["id"]
        assert proposed.json()["swap_type"] == "targeted"

        accepted = client.post(f"{API}/swaps/{swap_id}/respond", json={"decision": "accept"}, headers=employee("user-b"))
        assert accepted.json()["status"] == "target_accepted"

        approved = client.post(f"{API}/swaps/{swap_id}/approve", json={"notes": "fine"}, headers=MANAGER)
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert holders(client, first_id) == ["user-b"]
        assert holders(client, second_id) == ["user-a"]

    def test_propose_unheld_shift(self, client, held):
        first_id, _ = held

        response = client.post(f"{API}/swaps", json={"origin_shift_id": first_id}, headers=employee("user-c"))

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_ARGUMENT"

    def test_wrong_responder_forbidden(self, client, held):
        first_id, _ = held
        swap = client.post(
            f"{API}/swaps", json={"origin_shift_id": first_id, "target_user_id": "user-b"}, headers=employee("user-a")
        ).json()

        response = client.post(f"{API}/swaps/{swap['id']}/respond", json={"decision": "accept"}, headers=employee("user-c"))

        assert response.status_code == 403

    def test_declined_swap_cannot_be_approved(self, client, held):
        first_id, second_id = held
        swap = client.post(
            f"{API}/swaps",
            json={"origin_shift_id": first_id, "target_user_id": "user-b", "target_shift_id": second_id},
            headers=employee("user-a")
        ).json()
        client.post(f"{API}/swaps/{swap['id']}/respond", json={"decision": "decline"}, headers=employee("user-b"))

        response = client.post(f"{API}/swaps/{swap['id']}/approve", headers=MANAGER)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_STATE"
        assert client.get(f"{API}/swaps/{swap['id']}", headers=MANAGER).json()["status"] == "target_declined"

    def test_employee_cannot_approve(self, client, held):
        first_id, _ = held
        swap = client.post(
            f"{API}/swaps", json={"origin_shift_id": first_id, "target_user_id": "user-b"}, headers=employee("user-a")
        ).json()
        client.post(f"{API}/swaps/{swap['id']}/respond", json={"decision": "accept"}, headers=employee("user-b"))

        response = client.post(f"{API}/swaps/{swap['id']}/approve", headers=employee("user-b"))

        assert response.status_code == 403

    def test_deny_and_cancel(self, client, held):
        first_id, _ = held
        denied = client.post(
            f"{API}/swaps", json={"origin_shift_id": first_id, "target_user_id": "user-b"}, headers=employee("user-a")
        ).json()
        client.post(f"{API}/swaps/{denied['id']}/respond", json={"decision": "accept"}, headers=employee("user-b"))
        cancelled = client.post(f"{API}/swaps", json={"origin_shift_id": first_id}, headers=employee("user-a")).json()

        assert client.post(f"{API}/swaps/{denied['id']}/deny", headers=MANAGER).json()["status"] == "denied"
        assert client.post(f"{API}/swaps/{cancelled['id']}/cancel", headers=employee("user-a")).json()["status"] == "cancelled"

    def test_list_swaps_scoped_to_employee(self, client, held):
        first_id, second_id = held
        client.post(f"{API}/swaps", json={"origin_shift_id": first_id}, headers=employee("user-a"))
        client.post(f"{API}/swaps", json={"origin_shift_id": second_id}, headers=employee("user-b"))

        mine = client.get(f"{API}/swaps", headers=employee("user-a")).json()
        everything = client.get(f"{API}/swaps", params={"status": "proposed"}, headers=MANAGER).json()

        assert len(mine) == 1
        assert len(everything) == 2
