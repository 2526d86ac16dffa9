"""
Pydantic schemas.

Documents are what the core returns: an entity plus its id sets and ordered
child-id lists, assembled from the store. Request bodies are only used by
the HTTP layer. Kept separate from ORM models to avoid coupling transport to
storage.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ──────────────────────────── Documents ───────────────────────────────────

class UserSummary(BaseModel):
    """Display attributes used to populate references to a user."""
    user_id: str
    username: str
    full_name: Optional[str] = None
    profile_picture: Optional[str] = None

    class Config:
        from_attributes = True


class UserDocument(BaseModel):
    user_id: str
    username: str
    email: str
    full_name: Optional[str] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    cover_picture: Optional[str] = None
    followers: list[str] = []
    following: list[str] = []
    block_list: list[str] = []
    posts: list[str] = []
    created_at: datetime


class PostDocument(BaseModel):
    post_id: str
    user_id: str
    caption: str
    media: list[str] = []
    likes: list[str] = []
    comments: list[str] = []
    created_at: datetime


class ReplyDocument(BaseModel):
    reply_id: str
    user_id: str
    text: str
    likes: list[str] = []
    created_at: datetime
    author: Optional[UserSummary] = None


class CommentDocument(BaseModel):
    comment_id: str
    user_id: str
    post_id: Optional[str]
    text: str
    likes: list[str] = []
    replies: list[ReplyDocument] = []
    created_at: datetime
    author: Optional[UserSummary] = None


class StoryDocument(BaseModel):
    story_id: str
    user_id: str
    text: str
    image: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DeletionReport(BaseModel):
    """Rows touched by each cascade step, in execution order."""
    user_id: str
    steps: dict[str, int]


# ──────────────────────────── Users ───────────────────────────────────────

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    full_name: Optional[str] = None
    # Produced by the credential service; stored as-is.
    password_hash: Optional[str] = None


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    cover_picture: Optional[str] = None


class ActorRequest(BaseModel):
    """The logged-in user performing the action."""
    user_id: str


# ──────────────────────────── Posts ───────────────────────────────────────

class PostCreate(BaseModel):
    user_id: str
    caption: str = ""
    media: list[str] = []


class PostUpdate(BaseModel):
    caption: str


# ──────────────────────────── Comments ────────────────────────────────────

class CommentCreate(BaseModel):
    post_id: str
    user_id: str
    text: str


class TextUpdate(BaseModel):
    """Body for comment/reply creation and edits by `user_id`."""
    user_id: str
    text: str


# ──────────────────────────── Stories ─────────────────────────────────────

class StoryCreate(BaseModel):
    user_id: str
    text: str
    image: Optional[str] = None
