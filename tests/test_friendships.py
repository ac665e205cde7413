import pytest

from kinship.core.exceptions import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from kinship.modules.friendships.models.friendship import Friendship
from kinship.modules.friendships.services.friendship import (
    block_user,
    check_friendship,
    delete_friendship,
    get_friend_ids,
    respond_to_friend_request,
    send_friend_request,
)

def test_accepting_a_request_makes_friends(db, make_user):
    alice = make_user()
    bob = make_user()

    request = send_friend_request(db, alice.id, bob.id)
    assert request.status == "pending"
    assert not check_friendship(db, alice.id, bob.id)

    respond_to_friend_request(db, request, bob.id, "accept")

    assert check_friendship(db, bob.id, alice.id)
    assert get_friend_ids(db, alice.id) == {bob.id}

def test_only_the_recipient_can_respond(db, make_user):
    alice = make_user()
    bob = make_user()
    request = send_friend_request(db, alice.id, bob.id)

    with pytest.raises(ForbiddenError):
        respond_to_friend_request(db, request, alice.id, "accept")

def test_request_rules(db, make_user, befriend):
    alice = make_user()
    bob = make_user()
    carol = make_user()

    with pytest.raises(InvalidInputError):
        send_friend_request(db, alice.id, alice.id)
    with pytest.raises(NotFoundError):
        send_friend_request(db, alice.id, "ghost")

    send_friend_request(db, alice.id, bob.id)
    with pytest.raises(ConflictError):
        send_friend_request(db, bob.id, alice.id)

    befriend(alice, carol)
    with pytest.raises(InvalidInputError, match="already friends"):
        send_friend_request(db, carol.id, alice.id)

def test_declined_request_can_be_sent_again(db, make_user):
    alice = make_user()
    bob = make_user()
    request = send_friend_request(db, alice.id, bob.id)
    respond_to_friend_request(db, request, bob.id, "decline")

    again = send_friend_request(db, bob.id, alice.id)

    assert again.id == request.id
    assert (again.requester_id, again.recipient_id, again.status) == (bob.id, alice.id, "pending")
    assert db.query(Friendship).count() == 1

def test_blocked_users_cannot_send_requests(db, make_user):
    alice = make_user()
    bob = make_user()
    block_user(db, alice.id, bob.id)

    with pytest.raises(ForbiddenError):
        send_friend_request(db, bob.id, alice.id)

def test_pending_request_is_cancelled_by_requester_only(db, make_user):
    alice = make_user()
    bob = make_user()
    request = send_friend_request(db, alice.id, bob.id)

    with pytest.raises(ForbiddenError):
        delete_friendship(db, request, bob.id)

    assert delete_friendship(db, request, alice.id) == "Friend request cancelled successfully"
    assert db.query(Friendship).count() == 0

def test_either_friend_can_end_the_friendship(db, make_user, befriend):
    alice = make_user()
    bob = make_user()
    friendship = befriend(alice, bob)

    assert delete_friendship(db, friendship, bob.id) == "Friendship ended successfully"
    assert get_friend_ids(db, alice.id) == set()

def test_friendship_endpoints(client, auth_headers, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")

    response = client.post("/api/v1/friends", json={"recipient_id": bob.id}, headers=auth_headers(alice))
    assert response.status_code == 201
    friendship = response.json()["friendship"]
    assert friendship["status"] == "pending"
    assert friendship["requester"]["id"] == alice.id

    response = client.post("/api/v1/friends", json={"recipient_id": bob.id}, headers=auth_headers(alice))
    assert response.status_code == 409

    response = client.get("/api/v1/friends/requests", headers=auth_headers(bob))
    requests = response.json()["requests"]
    assert [(r["id"], r["type"]) for r in requests] == [(friendship["id"], "incoming")]
    assert requests[0]["requester"]["name"] == "Alice"

    response = client.get("/api/v1/friends/requests?type=sideways", headers=auth_headers(bob))
    assert response.status_code == 400

    response = client.put(
        f"/api/v1/friends/requests/{friendship['id']}", json={"action": "accept"}, headers=auth_headers(bob)
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Friend request accepted successfully"

    response = client.get("/api/v1/friends", headers=auth_headers(alice))
    assert [f["id"] for f in response.json()["friends"]] == [bob.id]

    response = client.delete(f"/api/v1/friends/requests/{friendship['id']}", headers=auth_headers(alice))
    assert response.json() == {"message": "Friendship ended successfully"}

    response = client.put("/api/v1/friends/requests/missing", json={"action": "accept"}, headers=auth_headers(bob))
    assert response.status_code == 404

def test_block_endpoint(client, auth_headers, make_user):
    alice = make_user()
    bob = make_user()

    response = client.post(f"/api/v1/friends/block/{bob.id}", headers=auth_headers(alice))

    assert response.status_code == 200
    assert response.json()["status"] == "blocked"
    assert response.json()["requester"]["id"] == alice.id
