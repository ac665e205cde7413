from datetime import timedelta

from kinship.db.session import utcnow
from kinship.modules.friendships.services.friendship import (
    block_user,
    respond_to_friend_request,
    send_friend_request,
)
from kinship.modules.friendships.services.suggestion import (
    DEFAULT_REASON_LABEL,
    REASON_LABELS,
    get_reason_label,
    get_suggestions,
)
from kinship.modules.groups.services.membership import leave_group

def ids_of(suggestions):
    return [s.id for s in suggestions]

def test_connected_users_are_never_suggested(db, make_user, make_group, befriend):
    viewer = make_user("Viewer")
    friend = make_user("Friend")
    outgoing = make_user("Outgoing")
    incoming = make_user("Incoming")
    declined = make_user("Declined")
    blocked = make_user("Blocked")
    free = make_user("Free")

    # Everyone shares a group with the viewer, so only exclusion keeps them out
    make_group(viewer, members=[friend, outgoing, incoming, declined, blocked, free])

    befriend(viewer, friend)
    send_friend_request(db, viewer.id, outgoing.id)
    send_friend_request(db, incoming.id, viewer.id)
    request = send_friend_request(db, viewer.id, declined.id)
    respond_to_friend_request(db, request, declined.id, "decline")
    block_user(db, blocked.id, viewer.id)

    suggestions = get_suggestions(db, viewer.id, limit=10)
    suggested = ids_of(suggestions)

    assert viewer.id not in suggested
    for user in (friend, outgoing, incoming, declined, blocked):
        assert user.id not in suggested
    assert suggested == [free.id]
    assert suggestions[0].reason == "mutual_groups"

def test_mutual_groups_fill_the_limit_before_other_strategies(db, make_user, make_group, befriend):
    viewer = make_user()
    friend = make_user()
    friend_of_friend = make_user()
    mates = [make_user() for _ in range(3)]
    make_user()  # a new user who would otherwise qualify

    make_group(viewer, members=mates)
    befriend(viewer, friend)
    befriend(friend, friend_of_friend)

    suggestions = get_suggestions(db, viewer.id, limit=3)

    assert set(ids_of(suggestions)) == {mate.id for mate in mates}
    assert {s.reason for s in suggestions} == {"mutual_groups"}

def test_strategies_are_concatenated_in_order(db, make_user, make_group, befriend):
    now = utcnow()
    viewer = make_user(created_at=now - timedelta(days=10))
    mate = make_user(created_at=now - timedelta(days=9))
    friend = make_user(created_at=now - timedelta(days=8))
    friend_of_friend = make_user(created_at=now - timedelta(days=7))
    older = make_user(created_at=now - timedelta(days=2))
    newest = make_user(created_at=now - timedelta(days=1))

    make_group(viewer, members=[mate])
    befriend(viewer, friend)
    befriend(friend, friend_of_friend)

    suggestions = get_suggestions(db, viewer.id, limit=10)

    assert ids_of(suggestions) == [mate.id, friend_of_friend.id, newest.id, older.id]
    assert [s.reason for s in suggestions] == [
        "mutual_groups",
        "friends_of_friends",
        "new_users",
        "new_users",
    ]
    assert [s.reason_label for s in suggestions] == [
        REASON_LABELS["mutual_groups"],
        REASON_LABELS["friends_of_friends"],
        REASON_LABELS["new_users"],
        REASON_LABELS["new_users"],
    ]

def test_candidate_found_by_two_strategies_appears_once(db, make_user, make_group, befriend):
    viewer = make_user()
    friend = make_user()
    both = make_user()

    make_group(viewer, members=[both])
    befriend(viewer, friend)
    befriend(friend, both)

    suggestions = get_suggestions(db, viewer.id, limit=10)
    suggested = ids_of(suggestions)

    assert len(suggested) == len(set(suggested))
    assert suggested.count(both.id) == 1
    assert next(s for s in suggestions if s.id == both.id).reason == "mutual_groups"

def test_suggestions_respect_limit(db, make_user):
    viewer = make_user()
    for _ in range(5):
        make_user()

    assert len(get_suggestions(db, viewer.id, limit=2)) == 2

def test_no_candidates_is_an_empty_list(db, make_user):
    viewer = make_user()
    assert get_suggestions(db, viewer.id) == []

def test_inactive_members_are_not_mutual_group_candidates(db, make_user, make_group):
    viewer = make_user(created_at=utcnow() - timedelta(days=1))
    departed = make_user(created_at=utcnow() - timedelta(days=2))
    group = make_group(viewer, members=[departed])
    leave_group(db, group, departed.id)

    suggestions = get_suggestions(db, viewer.id)

    # Still suggested, but only as a new user
    assert [(s.id, s.reason) for s in suggestions] == [(departed.id, "new_users")]

def test_unknown_reason_falls_back_to_default_label():
    assert get_reason_label("mutual_groups") == "In your groups"
    assert get_reason_label("something_else") == DEFAULT_REASON_LABEL == "Suggested for you"

def test_suggestions_endpoint(client, auth_headers, make_user, make_group):
    viewer = make_user()
    mate = make_user("Mate")
    make_group(viewer, members=[mate])

    response = client.get("/api/v1/friends/suggestions?limit=5", headers=auth_headers(viewer))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["suggestions"][0]["id"] == mate.id
    assert body["suggestions"][0]["name"] == "Mate"
    assert body["suggestions"][0]["reason"] == "mutual_groups"
    assert body["suggestions"][0]["reason_label"] == "In your groups"

def test_suggestions_limit_is_validated(client, auth_headers, make_user):
    viewer = make_user()
    response = client.get("/api/v1/friends/suggestions?limit=0", headers=auth_headers(viewer))
    assert response.status_code == 400
    assert response.json()["detail"] == "limit: Input should be greater than or equal to 1"

def test_suggestions_require_authentication(client):
    response = client.get("/api/v1/friends/suggestions")

    assert response.status_code == 401
    assert response.json() == {"detail": "Could not validate credentials"}
    assert response.headers["www-authenticate"] == "Bearer"

def test_deactivated_accounts_leave_room_for_other_strategies(db, make_user, make_group, befriend):
    viewer = make_user("Viewer")
    mate = make_user("Mate")
    dormant_mate = make_user("Dormant mate")
    friend = make_user("Friend")
    dormant_contact = make_user("Dormant contact")
    newcomer = make_user("Newcomer")

    make_group(viewer, members=[mate, dormant_mate])
    befriend(viewer, friend)
    befriend(friend, dormant_contact)
    for user in (dormant_mate, dormant_contact):
        user.is_active = False
    db.commit()

    suggestions = get_suggestions(db, viewer.id, limit=2)

    assert [(s.id, s.reason) for s in suggestions] == [
        (mate.id, "mutual_groups"),
        (newcomer.id, "new_users"),
    ]
