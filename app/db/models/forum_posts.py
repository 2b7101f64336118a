from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class ForumPost(Base):
    """Read model of the forum service; badge predicates only read it."""

    __tablename__ = "forum_posts"
    __table_args__ = (
        CheckConstraint("helpful_votes >= 0", name="ck_forum_posts_helpful_votes_non_negative"),
        CheckConstraint("replies_count >= 0", name="ck_forum_posts_replies_non_negative"),
        Index("idx_forum_posts_author", "author_user_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    author_user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    helpful_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    replies_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
