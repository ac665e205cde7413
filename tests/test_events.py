from datetime import timedelta, timezone
import random

import pytest

from kinship.core.exceptions import ForbiddenError, InvalidInputError
from kinship.db.session import utcnow
from kinship.modules.counters.services.counters import count_attendance
from kinship.modules.events.schemas.event import EventCreate, EventUpdate
from kinship.modules.events.services.attendance import get_attendance, remove_attendance, set_attendance
from kinship.modules.events.services.event import create_event, update_event

def assert_counters_match(db, event):
    db.refresh(event)
    going = count_attendance(db, event.id, ("going",))
    maybe = count_attendance(db, event.id, ("maybe",))
    not_going = count_attendance(db, event.id, ("not_going",))
    assert event.going_count == going
    assert event.maybe_count == maybe
    assert event.not_going_count == not_going
    assert event.attendee_count == going + maybe

@pytest.fixture
def group_with_members(make_user, make_group):
    owner = make_user("Organizer")
    members = [make_user() for _ in range(4)]
    group = make_group(owner, members=members)
    return owner, members, group

def test_counters_follow_any_sequence_of_transitions(db, make_event, group_with_members):
    owner, members, group = group_with_members
    event = make_event(owner, group)
    rng = random.Random(7)

    for _ in range(40):
        user = rng.choice(members)
        if rng.random() < 0.2 and get_attendance(db, event.id, user.id):
            remove_attendance(db, event, user.id)
        else:
            set_attendance(db, event, user.id, rng.choice(["going", "maybe", "not_going"]))
        assert_counters_match(db, event)

def test_capacity_guard_rejects_sequential_second_seat(db, make_event, group_with_members):
    owner, members, group = group_with_members
    event = make_event(owner, group, max_attendees=1)

    set_attendance(db, event, members[0].id, "going")

    with pytest.raises(InvalidInputError, match="full capacity"):
        set_attendance(db, event, members[1].id, "going")

    db.refresh(event)
    assert event.going_count == 1
    assert get_attendance(db, event.id, members[1].id) is None

def test_full_event_still_accepts_maybe(db, make_event, group_with_members):
    owner, members, group = group_with_members
    event = make_event(owner, group, max_attendees=1)
    set_attendance(db, event, members[0].id, "going")

    set_attendance(db, event, members[1].id, "maybe")

    db.refresh(event)
    assert (event.going_count, event.maybe_count, event.attendee_count) == (1, 1, 2)

def test_going_again_on_a_full_event_keeps_the_seat(db, make_event, group_with_members):
    owner, members, group = group_with_members
    event = make_event(owner, group, max_attendees=1)
    set_attendance(db, event, members[0].id, "going")

    attendance = set_attendance(db, event, members[0].id, "going")

    assert attendance.status == "going"
    db.refresh(event)
    assert (event.going_count, event.attendee_count) == (1, 1)

def test_same_status_twice_leaves_counters_alone(db, make_event, group_with_members):
    owner, members, group = group_with_members
    event = make_event(owner, group)

    set_attendance(db, event, members[0].id, "maybe")
    set_attendance(db, event, members[0].id, "maybe")

    db.refresh(event)
    assert (event.maybe_count, event.attendee_count) == (1, 1)

def test_end_to_end_attendance_scenario(db, make_event, group_with_members):
    owner, (u1, u2, u3, _), group = group_with_members
    event = make_event(owner, group, max_attendees=2)

    set_attendance(db, event, u1.id, "going")
    set_attendance(db, event, u2.id, "going")
    db.refresh(event)
    assert (event.going_count, event.attendee_count) == (2, 2)

    with pytest.raises(InvalidInputError):
        set_attendance(db, event, u3.id, "going")
    db.refresh(event)
    assert (event.going_count, event.maybe_count, event.attendee_count) == (2, 0, 2)

    set_attendance(db, event, u1.id, "maybe")
    db.refresh(event)
    assert (event.going_count, event.maybe_count, event.attendee_count) == (1, 1, 2)

def test_removing_attendance_updates_counters(db, make_event, group_with_members):
    owner, members, group = group_with_members
    event = make_event(owner, group)
    set_attendance(db, event, members[0].id, "going")
    set_attendance(db, event, members[1].id, "not_going")

    remove_attendance(db, event, members[0].id)

    db.refresh(event)
    assert (event.going_count, event.not_going_count, event.attendee_count) == (0, 1, 0)

def test_removing_missing_attendance_is_rejected(db, make_event, group_with_members):
    owner, members, group = group_with_members
    event = make_event(owner, group)

    with pytest.raises(InvalidInputError, match="No attendance record found"):
        remove_attendance(db, event, members[0].id)

def test_invalid_status_is_rejected(db, make_event, group_with_members):
    owner, members, group = group_with_members
    event = make_event(owner, group)

    with pytest.raises(InvalidInputError):
        set_attendance(db, event, members[0].id, "interested")
    with pytest.raises(InvalidInputError):
        set_attendance(db, event, members[0].id, None)

def test_event_requires_group_membership(db, make_user, make_group, make_event):
    owner = make_user()
    outsider = make_user()
    group = make_group(owner)

    with pytest.raises(ForbiddenError):
        make_event(outsider, group)

@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"start_date": utcnow() - timedelta(days=1)}, "in the future"),
        ({"end_date": utcnow()}, "End date must be after start date"),
        ({"location": None}, "Location is required"),
        ({"is_virtual": True}, "Virtual link is required"),
        ({"max_attendees": 0}, "Max attendees"),
    ],
)
def test_event_details_are_validated(db, make_user, make_group, make_event, overrides, message):
    owner = make_user()
    group = make_group(owner)

    with pytest.raises(InvalidInputError, match=message):
        make_event(owner, group, **overrides)

def test_virtual_event_with_link(db, make_user, make_group, make_event):
    owner = make_user()
    group = make_group(owner)

    event = make_event(owner, group, is_virtual=True, location=None, virtual_link="https://meet.example.com/x")

    assert event.is_virtual is True
    assert event.location is None

def test_update_revalidates_dates(db, make_user, make_group, make_event):
    owner = make_user()
    group = make_group(owner)
    event = make_event(owner, group)

    with pytest.raises(InvalidInputError):
        update_event(db, event, EventUpdate(end_date=event.start_date - timedelta(hours=1)))

    updated = update_event(db, event, EventUpdate(title="Renamed", max_attendees=None))
    assert updated.title == "Renamed"

def test_create_event_accepts_aware_datetimes(db, make_user, make_group):
    owner = make_user()
    group = make_group(owner)
    start = (utcnow() + timedelta(days=2)).replace(tzinfo=timezone.utc)

    event = create_event(
        db,
        EventCreate(
            title="Aware",
            description="Timezone aware input",
            start_date=start,
            end_date=start + timedelta(hours=1),
            location="Online",
            group_id=group.id,
        ),
        owner.id,
    )

    assert event.start_date.tzinfo is None
    assert event.start_date == start.replace(tzinfo=None)

def test_attendance_endpoints(client, auth_headers, make_user, make_group, make_event):
    owner = make_user()
    guest = make_user()
    group = make_group(owner, members=[guest])
    event = make_event(owner, group, max_attendees=1)

    response = client.post(
        f"/api/v1/events/{event.id}/attendance", json={"status": "going"}, headers=auth_headers(guest)
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Attendance updated successfully", "status": "going"}

    response = client.post(
        f"/api/v1/events/{event.id}/attendance", json={"status": "going"}, headers=auth_headers(owner)
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "Event is at full capacity"}

    response = client.get(f"/api/v1/events/{event.id}", headers=auth_headers(guest))
    assert response.status_code == 200
    body = response.json()
    assert body["user_attendance"] == "going"
    assert body["going_count"] == 1
    assert body["attendee_count"] == 1
    assert body["group"] == {"id": group.id, "name": group.name}

    response = client.delete(f"/api/v1/events/{event.id}/attendance", headers=auth_headers(guest))
    assert response.status_code == 200

    response = client.delete(f"/api/v1/events/{event.id}/attendance", headers=auth_headers(guest))
    assert response.status_code == 400

def test_event_crud_endpoints(client, auth_headers, make_user, make_group):
    owner = make_user()
    member = make_user()
    group = make_group(owner, members=[member])
    start = utcnow() + timedelta(days=3)

    response = client.post(
        "/api/v1/events",
        json={
            "title": "Hack night",
            "description": "Bring a laptop",
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(hours=3)).isoformat(),
            "location": "Library",
            "group_id": group.id,
        },
        headers=auth_headers(owner),
    )
    assert response.status_code == 201
    event_id = response.json()["id"]
    assert response.json()["organizer"]["id"] == owner.id

    response = client.put(f"/api/v1/events/{event_id}", json={"title": "Nope"}, headers=auth_headers(member))
    assert response.status_code == 403

    response = client.get(f"/api/v1/events?group_id={group.id}", headers=auth_headers(member))
    assert response.status_code == 200
    assert [event["id"] for event in response.json()["events"]] == [event_id]
    assert response.json()["pagination"]["total"] == 1

    response = client.delete(f"/api/v1/events/{event_id}", headers=auth_headers(owner))
    assert response.status_code == 200

    response = client.get(f"/api/v1/events/{event_id}", headers=auth_headers(owner))
    assert response.status_code == 404
    assert response.json() == {"detail": "Event not found"}

def test_attendance_requires_authentication(client, db, make_user, make_group, make_event):
    owner = make_user()
    group = make_group(owner)
    event = make_event(owner, group)

    response = client.post(f"/api/v1/events/{event.id}/attendance", json={"status": "going"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"

    response = client.delete(f"/api/v1/events/{event.id}/attendance")
    assert response.status_code == 401
    assert response.json() == {"detail": "Could not validate credentials"}

    assert_counters_match(db, event)
    assert event.attendee_count == 0
