import os

# Must be set before kinship is imported; the engine is built at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import timedelta
import uuid

import pytest
from fastapi.testclient import TestClient

from kinship.core.security import create_access_token
from kinship.db.base import Base
from kinship.db.session import SessionLocal, engine, get_db, utcnow
from kinship.main import app
from kinship.modules.events.schemas.event import EventCreate
from kinship.modules.events.services.event import create_event
from kinship.modules.friendships.services.friendship import respond_to_friend_request, send_friend_request
from kinship.modules.groups.schemas.group import GroupCreate
from kinship.modules.groups.services.group import create_group
from kinship.modules.groups.services.membership import join_group
from kinship.modules.personal_posts.schemas.personal_post import PersonalPostCreate
from kinship.modules.personal_posts.services.personal_post import create_personal_post
from kinship.modules.posts.schemas.post import PostCreate
from kinship.modules.posts.services.post import create_post
from kinship.modules.user_management.models.user import User

@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers

@pytest.fixture
def make_user(db):
    """Insert a user directly; password hashing is skipped to keep tests fast"""
    counter = {"n": 0}

    def _make(name: str = None, created_at=None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            id=str(uuid.uuid4()),
            name=name or f"User {n}",
            email=f"user{n}-{uuid.uuid4().hex[:6]}@example.com",
            hashed_password="not-a-real-hash",
            is_active=True,
        )
        if created_at is not None:
            user.created_at = created_at
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make

@pytest.fixture
def make_group(db):
    counter = {"n": 0}

    def _make(owner: User, members=(), is_private: bool = False, category: str = "technology"):
        counter["n"] += 1
        group = create_group(
            db,
            GroupCreate(
                name=f"Group number {counter['n']}",
                description="A group used by the test suite",
                category=category,
                is_private=is_private,
            ),
            owner.id,
        )
        for member in members:
            join_group(db, group, member.id)
        db.refresh(group)
        return group

    return _make

@pytest.fixture
def befriend(db):
    def _befriend(a: User, b: User):
        friendship = send_friend_request(db, a.id, b.id)
        return respond_to_friend_request(db, friendship, b.id, "accept")

    return _befriend

@pytest.fixture
def make_post(db):
    def _make(author: User, group, content: str = "Hello group", created_at=None):
        post = create_post(db, PostCreate(content=content, group_id=group.id), author.id)
        if created_at is not None:
            post.created_at = created_at
            db.commit()
            db.refresh(post)
        return post

    return _make

@pytest.fixture
def make_personal_post(db):
    def _make(author: User, target: User, content: str = "Hello wall", created_at=None):
        post = create_personal_post(
            db, PersonalPostCreate(content=content, target_user_id=target.id), author.id
        )
        if created_at is not None:
            post.created_at = created_at
            db.commit()
            db.refresh(post)
        return post

    return _make

@pytest.fixture
def make_event(db):
    def _make(organizer: User, group, max_attendees=None, **overrides):
        start = utcnow() + timedelta(days=1)
        data = dict(
            title="Meetup",
            description="Monthly meetup",
            start_date=start,
            end_date=start + timedelta(hours=2),
            location="Community hall",
            is_virtual=False,
            max_attendees=max_attendees,
            group_id=group.id,
        )
        data.update(overrides)
        return create_event(db, EventCreate(**data), organizer.id)

    return _make
