"""
Typed failures raised by the content graph core.

Every operation either returns its document or raises exactly one of these.
They carry no transport semantics; main.py maps them onto HTTP responses.
"""
from typing import Optional


class ContentGraphError(Exception):
    code = "content_graph_error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__ or self.code)


class NotFoundError(ContentGraphError):
    code = "not_found"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")


class SelfReferenceError(ContentGraphError):
    """A user cannot target themselves with this action."""

    code = "self_reference"


class ValidationError(ContentGraphError):
    """Malformed input."""

    code = "validation_error"


# ─────────────────────────── Toggle conflicts ─────────────────────────────

class ConflictError(ContentGraphError):
    """The target state does not allow this toggle."""

    code = "conflict"


class AlreadyExistsError(ConflictError):
    """The entity or membership already exists."""

    code = "already_exists"


class AlreadyFollowingError(AlreadyExistsError):
    """Already following this user."""

    code = "already_following"


class AlreadyLikedError(AlreadyExistsError):
    """Already liked."""

    code = "already_liked"


class AlreadyBlockedError(ConflictError):
    """The user is already blocked."""

    code = "already_blocked"


class NotFollowingError(ConflictError):
    """Not following this user."""

    code = "not_following"


class NotLikedError(ConflictError):
    """Cannot dislike something that is not liked."""

    code = "not_liked"


class NotBlockedError(ConflictError):
    """The user is not blocked."""

    code = "not_blocked"


# ─────────────────────────── Permission ───────────────────────────────────

class ForbiddenError(ContentGraphError):
    code = "forbidden"


class BlockedError(ForbiddenError):
    """Unblock the user before following them."""

    code = "blocked"


class NotAuthorError(ForbiddenError):
    """Only the author can modify this content."""

    code = "not_author"
