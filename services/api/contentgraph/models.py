"""
SQLAlchemy ORM models.

Tables:
  users         — profiles (credential column is opaque to this service)
  follows       — follow edges (follower → followee); backs both
                  User.following and User.followers
  blocks        — block edges (blocker → blocked)
  posts         — posts; a user's post list is posts.user_id in creation order
  post_likes    — user × post like set
  comments      — comments; a post's comment list is comments.post_id
  comment_likes — user × comment like set
  replies       — replies owned by a comment, addressed by (comment_id, reply_id)
  reply_likes   — user × reply like set
  stories       — ephemeral user stories
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column

from contentgraph.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Ordered id lists are derived from created_at, so keep sub-second precision
# on MySQL/TiDB where DATETIME defaults to whole seconds.
Timestamp = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(255))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    profile_picture: Mapped[Optional[str]] = mapped_column(String(500))
    cover_picture: Mapped[Optional[str]] = mapped_column(String(500))
    # Written and checked by the credential service only.
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)


class Follow(Base):
    __tablename__ = "follows"

    follower_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    followee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)

    __table_args__ = (
        # "who follows user X?"
        Index("idx_followee", "followee_id"),
    )


class Block(Base):
    __tablename__ = "blocks"

    blocker_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    blocked_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)

    __table_args__ = (Index("idx_blocked", "blocked_id"),)


class Post(Base):
    __tablename__ = "posts"

    post_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    caption: Mapped[str] = mapped_column(Text, default="", nullable=False)
    # Opaque media references (URLs or object keys) in upload order
    media: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)

    __table_args__ = (
        Index("idx_posts_user", "user_id", "created_at"),
    )


class PostLike(Base):
    __tablename__ = "post_likes"

    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.post_id"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)

    __table_args__ = (Index("idx_post_likes_user", "user_id"),)


class Comment(Base):
    __tablename__ = "comments"

    comment_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    # NULL only while a user deletion has detached the comment from its post
    post_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("posts.post_id"), nullable=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)

    __table_args__ = (
        Index("idx_comments_post", "post_id", "created_at"),
        Index("idx_comments_user", "user_id"),
    )


class CommentLike(Base):
    __tablename__ = "comment_likes"

    comment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("comments.comment_id"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)

    __table_args__ = (Index("idx_comment_likes_user", "user_id"),)


class Reply(Base):
    __tablename__ = "replies"

    reply_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    comment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("comments.comment_id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)

    __table_args__ = (
        Index("idx_replies_comment", "comment_id", "created_at"),
        Index("idx_replies_user", "user_id"),
    )


class ReplyLike(Base):
    __tablename__ = "reply_likes"

    reply_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("replies.reply_id"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)

    __table_args__ = (Index("idx_reply_likes_user", "user_id"),)


class Story(Base):
    __tablename__ = "stories"

    story_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=_now, nullable=False)

    __table_args__ = (Index("idx_stories_user", "user_id", "created_at"),)
