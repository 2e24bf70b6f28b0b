"""Backend types - provider-neutral handles for review requests and reviews."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ReviewType(str, Enum):
    """Review event submitted on a review request."""
    APPROVE = "APPROVE"
    REQUEST_CHANGES = "REQUEST_CHANGES"
    COMMENT = "COMMENT"


class ReviewState(str, Enum):
    """State of an existing review as reported by the backend."""
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


class RequestState(str, Enum):
    """Filter for listing review requests."""
    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


# Combined check status and merge state values
CHECKS_PENDING_STATE = "pending"
MERGE_STATE_UNKNOWN = "unknown"
MERGE_STATE_CLEAN = "clean"


@dataclass(frozen=True, slots=True)
class ReviewRequest:
    """
    Opaque handle to a pull/merge request.

    Produced by a backend and handed back to the same kind of backend;
    the orchestrator only reads the neutral fields. ``mergeable_state``
    is populated only by a direct single-request fetch.
    """
    provider: str
    number: int
    workspace: str
    title: str = ""
    author: str | None = None
    merged: bool = False
    state: str = RequestState.OPEN.value
    mergeable_state: str | None = None


@dataclass(frozen=True, slots=True)
class Review:
    """An existing review on a review request."""
    review_id: int
    state: str
    author: str | None = None

    @property
    def is_approval(self) -> bool:
        return self.state == ReviewState.APPROVED.value


@dataclass(frozen=True, slots=True)
class ReviewSubmission:
    """A review to create: event type, optional body and inline comments."""
    review_type: ReviewType
    body: str = ""
    inline_comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Artifact:
    """Stored artifact text and its revision marker (optimistic concurrency)."""
    content: str
    revision: str
