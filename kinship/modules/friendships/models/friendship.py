from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Index

from kinship.db.session import Base, utcnow

FRIENDSHIP_STATUSES = ("pending", "accepted", "declined", "blocked")

def make_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for an unordered pair of users"""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"

# One row per unordered pair of users, whatever direction the request went
class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(String, primary_key=True, index=True)
    requester_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    recipient_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    pair_key = Column(String, nullable=False)
    status = Column(String, default="pending", nullable=False)  # pending, accepted, declined, blocked
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("pair_key", name="unique_friendship_pair"),
        CheckConstraint("requester_id != recipient_id", name="no_self_friendship"),
        Index("ix_friendships_status", "status"),
    )
