"""
Denormalized counter maintenance.

Two update rules are used, one per kind of counter:

* Like sets live on the liked row itself. Every add or remove rewrites the
  set and stores ``like_count = len(likes)`` in the same row update.
* Membership, attendance and comments live in their own tables. Writers
  apply a signed delta as a single ``UPDATE ... SET n = n + delta`` after
  the backing row has been written. The event ``attendee_count`` is never
  accumulated; it is recounted from the attendance table every time.

The ``recount_*`` functions rebuild a counter from its backing records and
``reconcile_all`` runs them over every row, for offline repair.
"""
from typing import Dict, List, Optional
import logging
from sqlalchemy.orm import Session
from sqlalchemy import func

from kinship.modules.events.models.event import Event, EventAttendance
from kinship.modules.groups.models.group import Group, GroupMembership
from kinship.modules.personal_posts.models.personal_post import PersonalPost
from kinship.modules.posts.comments.models.comment import Comment
from kinship.modules.posts.models.post import Post

logger = logging.getLogger(__name__)

STATUS_COUNTERS = {
    "going": Event.going_count,
    "maybe": Event.maybe_count,
    "not_going": Event.not_going_count,
}

# Like sets
def add_like(target, user_id: str) -> bool:
    """Add user_id to the row's like set; False when it was already there"""
    likes = list(target.likes or [])
    if user_id in likes:
        return False
    likes.append(user_id)
    # Assign a new list so the JSON column is flagged dirty
    target.likes = likes
    target.like_count = len(likes)
    return True

def remove_like(target, user_id: str) -> bool:
    """Remove user_id from the row's like set; False when it was absent"""
    likes = list(target.likes or [])
    if user_id not in likes:
        return False
    likes.remove(user_id)
    target.likes = likes
    target.like_count = len(likes)
    return True

def toggle_like(target, user_id: str) -> bool:
    """Flip the user's like and return whether it is now liked"""
    if remove_like(target, user_id):
        return False
    add_like(target, user_id)
    return True

# Deltas
def apply_member_delta(db: Session, group_id: str, delta: int) -> None:
    db.query(Group).filter(Group.id == group_id).update(
        {Group.member_count: Group.member_count + delta}, synchronize_session=False
    )
    logger.info(f"Group {group_id} member_count {delta:+d}")

def apply_comment_delta(db: Session, post_id: str, delta: int) -> None:
    db.query(Post).filter(Post.id == post_id).update(
        {Post.comment_count: Post.comment_count + delta}, synchronize_session=False
    )

def apply_attendance_transition(
    db: Session, event_id: str, previous: Optional[str], current: Optional[str]
) -> None:
    """
    Move one attendee from the previous status counter to the current one.

    Either side may be None (no record). A transition to the same status
    leaves the per-status counters alone. attendee_count is recounted in
    every case.
    """
    if previous != current:
        values = {}
        if previous is not None:
            column = STATUS_COUNTERS[previous]
            values[column] = column - 1
        if current is not None:
            column = STATUS_COUNTERS[current]
            values[column] = column + 1
        db.query(Event).filter(Event.id == event_id).update(values, synchronize_session=False)
        logger.info(f"Event {event_id} attendance {previous or 'none'} -> {current or 'none'}")

    refresh_attendee_count(db, event_id)

def count_attendance(db: Session, event_id: str, statuses) -> int:
    db.flush()
    return (
        db.query(func.count(EventAttendance.id))
        .filter(EventAttendance.event_id == event_id, EventAttendance.status.in_(statuses))
        .scalar()
    ) or 0

def refresh_attendee_count(db: Session, event_id: str) -> int:
    attendee_count = count_attendance(db, event_id, ("going", "maybe"))
    db.query(Event).filter(Event.id == event_id).update(
        {Event.attendee_count: attendee_count}, synchronize_session=False
    )
    return attendee_count

# Recount from backing records
def _correct(row, values: Dict[str, int]) -> bool:
    changed = {
        name: (getattr(row, name), value)
        for name, value in values.items()
        if getattr(row, name) != value
    }
    for name, (_, value) in changed.items():
        setattr(row, name, value)
    if changed:
        drift = ", ".join(f"{name} {old} -> {new}" for name, (old, new) in changed.items())
        logger.info(f"Corrected {row.__tablename__} {row.id}: {drift}")
    return bool(changed)

def _recount_event_row(db: Session, event: Event) -> bool:
    rows = (
        db.query(EventAttendance.status, func.count(EventAttendance.id))
        .filter(EventAttendance.event_id == event.id)
        .group_by(EventAttendance.status)
        .all()
    )
    counts = dict(rows)
    going = counts.get("going", 0)
    maybe = counts.get("maybe", 0)
    return _correct(event, {
        "going_count": going,
        "maybe_count": maybe,
        "not_going_count": counts.get("not_going", 0),
        "attendee_count": going + maybe,
    })

def _recount_group_row(db: Session, group: Group) -> bool:
    active = (
        db.query(func.count(GroupMembership.id))
        .filter(GroupMembership.group_id == group.id, GroupMembership.is_active == True)
        .scalar()
    ) or 0
    return _correct(group, {"member_count": active})

def _recount_post_row(db: Session, post: Post) -> bool:
    comments = db.query(func.count(Comment.id)).filter(Comment.post_id == post.id).scalar() or 0
    return _correct(post, {"like_count": len(post.likes or []), "comment_count": comments})

def _recount_liked_row(db: Session, row) -> bool:
    return _correct(row, {"like_count": len(row.likes or [])})

def _recount_one(db: Session, model, row_id: str, recount) -> bool:
    db.flush()
    row = db.query(model).populate_existing().filter(model.id == row_id).first()
    if row is None:
        return False
    changed = recount(db, row)
    db.commit()
    return changed

def recount_event(db: Session, event_id: str) -> bool:
    """Rebuild every attendance counter of an event; True when something drifted"""
    return _recount_one(db, Event, event_id, _recount_event_row)

def recount_group(db: Session, group_id: str) -> bool:
    return _recount_one(db, Group, group_id, _recount_group_row)

def recount_post(db: Session, post_id: str) -> bool:
    return _recount_one(db, Post, post_id, _recount_post_row)

def recount_personal_post(db: Session, post_id: str) -> bool:
    return _recount_one(db, PersonalPost, post_id, _recount_liked_row)

def recount_comment(db: Session, comment_id: str) -> bool:
    return _recount_one(db, Comment, comment_id, _recount_liked_row)

RECOUNTERS = (
    ("events", Event, _recount_event_row),
    ("groups", Group, _recount_group_row),
    ("posts", Post, _recount_post_row),
    ("personal_posts", PersonalPost, _recount_liked_row),
    ("comments", Comment, _recount_liked_row),
)

def reconcile_all(db: Session, commit: bool = True) -> Dict[str, List[str]]:
    """
    Recount every counter in the database.

    Returns the ids that were corrected, keyed by table. With commit=False
    the corrections are rolled back after the report is built.
    """
    db.flush()
    report: Dict[str, List[str]] = {}
    for name, model, recount in RECOUNTERS:
        corrected = [row.id for row in db.query(model).populate_existing().all() if recount(db, row)]
        report[name] = corrected
    if commit:
        db.commit()
    else:
        db.rollback()

    total = sum(len(ids) for ids in report.values())
    logger.info(f"Reconciliation finished, {total} rows corrected")
    return report
