from kinship.modules.counters.services.counters import (
    add_like,
    reconcile_all,
    recount_comment,
    recount_event,
    recount_group,
    recount_personal_post,
    recount_post,
    remove_like,
    toggle_like,
)
from kinship.modules.events.models.event import Event
from kinship.modules.events.services.attendance import set_attendance
from kinship.modules.groups.models.group import Group
from kinship.modules.groups.services.membership import leave_group
from kinship.modules.posts.comments.models.comment import Comment
from kinship.modules.posts.comments.schemas.comment import CommentCreate
from kinship.modules.posts.comments.services.comment import create_comment
from kinship.modules.posts.models.post import Post

class Likeable:
    def __init__(self):
        self.likes = []
        self.like_count = 0

def corrupt(db, model, row_id, **values):
    db.query(model).filter(model.id == row_id).update(values, synchronize_session=False)
    db.commit()

def test_like_helpers_keep_count_equal_to_set_size():
    row = Likeable()

    assert add_like(row, "a") is True
    assert add_like(row, "a") is False
    assert add_like(row, "b") is True
    assert (row.likes, row.like_count) == (["a", "b"], 2)

    assert remove_like(row, "c") is False
    assert remove_like(row, "a") is True
    assert (row.likes, row.like_count) == (["b"], 1)

def test_toggle_like_flips_membership():
    row = Likeable()

    assert toggle_like(row, "a") is True
    assert toggle_like(row, "a") is False
    assert (row.likes, row.like_count) == ([], 0)

def test_recount_event_repairs_drift(db, make_user, make_group, make_event):
    owner = make_user()
    guests = [make_user() for _ in range(3)]
    group = make_group(owner, members=guests)
    event = make_event(owner, group)
    set_attendance(db, event, guests[0].id, "going")
    set_attendance(db, event, guests[1].id, "maybe")
    set_attendance(db, event, guests[2].id, "not_going")

    corrupt(db, Event, event.id, going_count=9, maybe_count=0, not_going_count=4, attendee_count=1)

    assert recount_event(db, event.id) is True

    db.refresh(event)
    assert (event.going_count, event.maybe_count, event.not_going_count, event.attendee_count) == (1, 1, 1, 2)
    assert recount_event(db, event.id) is False

def test_recount_group_counts_only_active_members(db, make_user, make_group):
    owner = make_user()
    members = [make_user(), make_user()]
    group = make_group(owner, members=members)
    leave_group(db, group, members[0].id)

    corrupt(db, Group, group.id, member_count=7)

    assert recount_group(db, group.id) is True
    db.refresh(group)
    assert group.member_count == 2

def test_recount_post_rebuilds_likes_and_comments(db, make_user, make_group, make_post):
    owner = make_user()
    group = make_group(owner)
    post = make_post(owner, group)
    create_comment(db, post, CommentCreate(content="first"), owner.id)
    create_comment(db, post, CommentCreate(content="second"), owner.id)

    corrupt(db, Post, post.id, likes=["x", "y"], like_count=0, comment_count=0)

    assert recount_post(db, post.id) is True
    db.refresh(post)
    assert (post.like_count, post.comment_count) == (2, 2)

def test_recount_comment_matches_like_set(db, make_user, make_group, make_post):
    owner = make_user()
    fan = make_user()
    group = make_group(owner, members=[fan])
    comment = create_comment(db, make_post(owner, group), CommentCreate(content="hello"), owner.id)

    corrupt(db, Comment, comment.id, likes=[owner.id, fan.id], like_count=5)

    assert recount_comment(db, comment.id) is True
    db.refresh(comment)
    assert comment.like_count == 2
    assert recount_comment(db, comment.id) is False

def test_recount_of_missing_row_reports_nothing(db):
    assert recount_post(db, "missing") is False
    assert recount_personal_post(db, "missing") is False
    assert recount_comment(db, "missing") is False

def test_reconcile_all_reports_corrected_rows(db, make_user, make_group, make_post, make_personal_post):
    owner = make_user()
    group = make_group(owner)
    healthy = make_post(owner, group, "healthy")
    drifted = make_post(owner, group, "drifted")
    remark = create_comment(db, healthy, CommentCreate(content="nice"), owner.id)
    wall_post = make_personal_post(owner, owner)

    corrupt(db, Post, drifted.id, comment_count=3)
    corrupt(db, Comment, remark.id, likes=[owner.id], like_count=0)
    corrupt(db, Group, group.id, member_count=0)

    report = reconcile_all(db)

    assert report["posts"] == [drifted.id]
    assert report["groups"] == [group.id]
    assert report["personal_posts"] == []
    assert report["events"] == []
    assert report["comments"] == [remark.id]
    assert healthy.id not in report["posts"]
    assert wall_post.id not in report["personal_posts"]

    db.refresh(drifted)
    assert drifted.comment_count == 0
    db.refresh(remark)
    assert remark.like_count == 1
    assert reconcile_all(db) == {name: [] for name in report}

def test_reconcile_dry_run_leaves_rows_untouched(db, make_user, make_group):
    owner = make_user()
    group = make_group(owner)
    corrupt(db, Group, group.id, member_count=5)

    report = reconcile_all(db, commit=False)

    assert report["groups"] == [group.id]
    db.refresh(group)
    assert group.member_count == 5
