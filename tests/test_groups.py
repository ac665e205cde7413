import pytest

from kinship.core.exceptions import ConflictError, ForbiddenError, InvalidInputError
from kinship.modules.groups.models.group import GroupMembership
from kinship.modules.groups.schemas.group import GroupCreate
from kinship.modules.groups.services.group import create_group, delete_group
from kinship.modules.groups.services.membership import get_active_membership, join_group, leave_group
from kinship.modules.events.models.event import Event
from kinship.modules.events.services.attendance import set_attendance
from kinship.modules.posts.models.post import Post

def test_creator_becomes_owner(db, make_user, make_group):
    owner = make_user()
    group = make_group(owner)

    membership = get_active_membership(db, group.id, owner.id)
    assert membership.role == "owner"
    assert group.member_count == 1
    assert group.created_by == owner.id

def test_join_and_leave_move_member_count(db, make_user, make_group):
    owner = make_user()
    member = make_user()
    group = make_group(owner)

    join_group(db, group, member.id)
    db.refresh(group)
    assert group.member_count == 2

    leave_group(db, group, member.id)
    db.refresh(group)
    assert group.member_count == 1

def test_owner_cannot_leave(db, make_user, make_group):
    owner = make_user()
    group = make_group(owner, members=[make_user()])

    with pytest.raises(ForbiddenError):
        leave_group(db, group, owner.id)

    db.refresh(group)
    assert group.member_count == 2
    assert get_active_membership(db, group.id, owner.id) is not None

def test_rejoining_reactivates_the_single_membership(db, make_user, make_group):
    owner = make_user()
    member = make_user()
    group = make_group(owner)

    join_group(db, group, member.id)
    leave_group(db, group, member.id)
    join_group(db, group, member.id)

    rows = (
        db.query(GroupMembership)
        .filter(GroupMembership.group_id == group.id, GroupMembership.user_id == member.id)
        .all()
    )
    assert len(rows) == 1
    assert rows[0].is_active is True
    db.refresh(group)
    assert group.member_count == 2

def test_joining_twice_is_rejected(db, make_user, make_group):
    owner = make_user()
    member = make_user()
    group = make_group(owner, members=[member])

    with pytest.raises(InvalidInputError, match="already a member"):
        join_group(db, group, member.id)

    db.refresh(group)
    assert group.member_count == 2

def test_leaving_without_membership_is_rejected(db, make_user, make_group):
    owner = make_user()
    group = make_group(owner)

    with pytest.raises(InvalidInputError, match="not a member"):
        leave_group(db, group, make_user().id)

def test_group_names_are_unique_ignoring_case(db, make_user):
    owner = make_user()
    data = dict(name="Chess Club", description="We play chess on Fridays", category="sports")
    create_group(db, GroupCreate(**data), owner.id)

    with pytest.raises(ConflictError):
        create_group(db, GroupCreate(**{**data, "name": "chess club"}), owner.id)

def test_unknown_category_is_rejected(db, make_user):
    with pytest.raises(InvalidInputError, match="Category must be one of"):
        create_group(
            db,
            GroupCreate(name="Odd group", description="Not a real category here", category="knitting-ish"),
            make_user().id,
        )

def test_delete_group_removes_its_content(db, make_user, make_group, make_post, make_event):
    owner = make_user()
    member = make_user()
    group = make_group(owner, members=[member])
    make_post(member, group)
    event = make_event(owner, group)
    set_attendance(db, event, member.id, "going")
    group_id = group.id

    delete_group(db, group)

    assert db.query(Post).filter(Post.group_id == group_id).count() == 0
    assert db.query(Event).filter(Event.group_id == group_id).count() == 0
    assert db.query(GroupMembership).filter(GroupMembership.group_id == group_id).count() == 0

def test_group_endpoints(client, auth_headers, make_user):
    owner = make_user()
    member = make_user()

    response = client.post(
        "/api/v1/groups",
        json={
            "name": "Trail Runners",
            "description": "Weekend runs in the hills",
            "category": "sports",
            "tags": [" Running ", "Outdoors"],
        },
        headers=auth_headers(owner),
    )
    assert response.status_code == 201
    group = response.json()
    assert group["member_count"] == 1
    assert group["tags"] == ["running", "outdoors"]

    response = client.post(f"/api/v1/groups/{group['id']}/join", headers=auth_headers(member))
    assert response.status_code == 200
    assert response.json() == {"message": "Successfully joined the group"}

    response = client.get(f"/api/v1/groups/{group['id']}", headers=auth_headers(member))
    assert response.status_code == 200
    assert response.json()["member_count"] == 2
    assert response.json()["user_membership"]["role"] == "member"

    response = client.get(f"/api/v1/groups/{group['id']}/members", headers=auth_headers(member))
    assert [m["id"] for m in response.json()["members"]] == [owner.id, member.id]

    response = client.delete(f"/api/v1/groups/{group['id']}/join", headers=auth_headers(owner))
    assert response.status_code == 403

    response = client.delete(f"/api/v1/groups/{group['id']}/join", headers=auth_headers(member))
    assert response.status_code == 200
    assert response.json() == {"message": "Successfully left the group"}

    response = client.delete(f"/api/v1/groups/{group['id']}/join", headers=auth_headers(member))
    assert response.status_code == 400

def test_private_group_is_hidden_from_non_members(client, auth_headers, make_user, make_group):
    owner = make_user()
    stranger = make_user()
    group = make_group(owner, is_private=True)

    response = client.get(f"/api/v1/groups/{group.id}", headers=auth_headers(stranger))
    assert response.status_code == 403
    assert response.json() == {"detail": "This group is private"}

    response = client.get(f"/api/v1/groups/{group.id}", headers=auth_headers(owner))
    assert response.status_code == 200

def test_anonymous_listing_only_shows_public_groups(client, make_user, make_group):
    owner = make_user()
    public = make_group(owner)
    make_group(owner, is_private=True)

    response = client.get("/api/v1/groups")

    assert response.status_code == 200
    assert [g["id"] for g in response.json()["groups"]] == [public.id]
    assert response.json()["pagination"]["total"] == 1

def test_only_owner_and_admins_update(client, auth_headers, make_user, make_group):
    owner = make_user()
    member = make_user()
    group = make_group(owner, members=[member])

    response = client.put(
        f"/api/v1/groups/{group.id}", json={"rules": "Be kind"}, headers=auth_headers(member)
    )
    assert response.status_code == 403

    response = client.put(
        f"/api/v1/groups/{group.id}", json={"rules": "Be kind"}, headers=auth_headers(owner)
    )
    assert response.status_code == 200
    assert response.json()["rules"] == "Be kind"

def test_missing_group_is_not_found(client, auth_headers, make_user):
    response = client.post("/api/v1/groups/does-not-exist/join", headers=auth_headers(make_user()))

    assert response.status_code == 404
    assert response.json() == {"detail": "Group not found"}

def test_categories_endpoint(client):
    response = client.get("/api/v1/groups/categories")

    assert response.status_code == 200
    assert "technology" in response.json()["categories"]

def test_join_and_leave_require_authentication(client, db, make_user, make_group):
    owner = make_user()
    member = make_user()
    group = make_group(owner, members=[member])

    response = client.post(f"/api/v1/groups/{group.id}/join")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"

    response = client.delete(f"/api/v1/groups/{group.id}/join")
    assert response.status_code == 401
    assert response.json() == {"detail": "Could not validate credentials"}

    db.refresh(group)
    assert group.member_count == 2
