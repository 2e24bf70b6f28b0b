"""Repository backend interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .types import Artifact, Review, ReviewRequest, ReviewSubmission


class RepositoryBackend(ABC):
    """
    Capability interface over a version-control hosting service.

    One implementation per hosting provider. All methods raise
    ``BackendError`` (or a subclass) on failure; none of them retry.
    """

    @property
    @abstractmethod
    def provider(self) -> str:
        """Provider tag stamped on review request handles."""
        ...

    @property
    @abstractmethod
    def base_branch(self) -> str:
        """Base line that review requests target."""
        ...

    @abstractmethod
    async def create_workspace(self, name: str, base: str) -> None:
        """Create an isolated workspace (branch) from the base line."""
        ...

    @abstractmethod
    async def delete_workspace(self, name: str) -> None:
        """Delete the named workspace."""
        ...

    @abstractmethod
    async def create_artifact(self, workspace: str, content: str) -> None:
        """Create the RFC artifact file in the workspace."""
        ...

    @abstractmethod
    async def get_artifact(self, workspace: str) -> Artifact:
        """Return the current artifact content and revision marker."""
        ...

    @abstractmethod
    async def update_artifact(self, request: ReviewRequest, content: str) -> None:
        """
        Overwrite the artifact on the request's workspace.

        Subject to optimistic concurrency on the artifact revision; a
        concurrent write surfaces as ``BackendError``.
        """
        ...

    @abstractmethod
    async def open_review_request(self, workspace: str, base: str) -> ReviewRequest:
        """Open a review request from the workspace to the base line."""
        ...

    @abstractmethod
    async def get_review_request(self, workspace: str) -> ReviewRequest:
        """Fetch the review request for a workspace; exactly one must exist."""
        ...

    @abstractmethod
    async def list_review_requests(
        self,
        state: str,
        count: int,
        owner: str | None = None,
        merged: bool | None = None,
    ) -> list[ReviewRequest]:
        """List review requests, filtered by owner and merged flag. ``count=-1`` means all."""
        ...

    @abstractmethod
    async def get_combined_status(self, request: ReviewRequest) -> str:
        """Return the combined check status of the request's workspace."""
        ...

    @abstractmethod
    async def refresh_review_request(self, request: ReviewRequest) -> ReviewRequest:
        """Re-fetch a single request, including its recomputed mergeable state."""
        ...

    @abstractmethod
    async def merge_review_request(self, request: ReviewRequest) -> str:
        """Merge the request into the base line and return the resulting revision."""
        ...

    @abstractmethod
    async def list_reviews(self, request: ReviewRequest) -> list[Review]:
        """List existing reviews on the request."""
        ...

    @abstractmethod
    async def create_review(self, request: ReviewRequest, submission: ReviewSubmission) -> None:
        """Submit a review on the request."""
        ...

    @abstractmethod
    async def dismiss_review(self, request: ReviewRequest, review: Review, message: str) -> None:
        """Dismiss an existing review."""
        ...

    @abstractmethod
    async def get_user_login(self) -> str:
        """Return the login of the authenticated identity."""
        ...

    @abstractmethod
    async def create_tag(self, revision: str, name: str) -> None:
        """Create a permanent tag at the given revision."""
        ...

    async def close(self) -> None:
        """Release any underlying connections."""
        return None
