"""
Workflow orchestrator - drives an RFC through its lifecycle.

State is never stored as an enum; it is implied by backend artifacts:

    Submitted -> UnderReview -> (Updated -> UnderReview)* -> Approved
        -> LoadRequested -> Loading -> Loaded | LoadFailed -> Merged

Every persist replaces the whole stored RFC. Load and merge run as
detached background tasks that outlive the request that started them;
their outcome is visible only through the load status and the logs.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Mapping, Sequence
from typing import Any

from ..backend.base import RepositoryBackend
from ..backend.types import RequestState, ReviewRequest, ReviewSubmission, ReviewType
from ..errors import (
    ArtifactParseError,
    BackendError,
    ConsistencyError,
    MergeabilityUndeterminedError,
    SchemaStoreError,
    ValidationError,
)
from ..ledger import (
    RFC,
    Action,
    ActionType,
    DataKey,
    LoadStatus,
    Target,
    TargetType,
    append_action,
    attach_comments,
    carry_persistent_actions,
    current_load_status,
    dumps_rfc,
    loads_rfc,
    refresh_signature,
    sign_actions,
    upsert_load_status,
)
from .identifiers import IdentifierFactory, time_identifier
from .mergeability import DEFAULT_RETRY_COUNT, DEFAULT_WAIT_SECONDS, Sleep, resolve_mergeability
from .schema_store import LoggingSchemaStore, SchemaStore

logger = logging.getLogger(__name__)

NO_LOAD_STATUS = "none"
DISMISSAL_MESSAGE = "dismissed."

# Review types that must carry at least one comment
COMMENT_REQUIRED_REVIEW_TYPES = frozenset({ReviewType.COMMENT, ReviewType.REQUEST_CHANGES})


def load_failure_note(error: Exception) -> str:
    """Describe a load failure for the stored RFC (backend messages stay in the logs)."""
    if isinstance(error, MergeabilityUndeterminedError):
        return "Mergeability could not be determined"
    if isinstance(error, SchemaStoreError):
        return "Schema store rejected the load"
    if isinstance(error, BackendError):
        return "Repository backend error during load"
    return "Inconsistent RFC state during load"


class WorkflowOrchestrator:
    """
    Sequences ledger operations with repository backend calls.

    ``backend`` acts as the requesting user. ``machine_backend`` acts as
    the service account and is used for merges, read paths and the
    load-and-merge sequence started by an approval.
    """

    def __init__(
        self,
        backend: RepositoryBackend,
        machine_backend: RepositoryBackend | None = None,
        schema_store: SchemaStore | None = None,
        identifier_factory: IdentifierFactory = time_identifier,
        retry_count: int = DEFAULT_RETRY_COUNT,
        wait_seconds: float = DEFAULT_WAIT_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.backend = backend
        self.machine_backend = machine_backend or backend
        self.schema_store = schema_store or LoggingSchemaStore()
        self.identifier_factory = identifier_factory
        self.retry_count = retry_count
        self.wait_seconds = wait_seconds
        self._sleep = sleep
        self._background: set[asyncio.Task] = set()

    # =========================================================================
    # Submit / Update
    # =========================================================================

    async def submit(self, rfc: RFC) -> str:
        """
        Create a workspace, store the signed RFC in it and open a review request.

        If writing the artifact or opening the request fails, the
        workspace is deleted and the original error is re-raised.
        Returns the new RFC identifier (the workspace name).
        """
        identifier = self.identifier_factory()
        rfc.identifier = identifier

        # Sign before any network call so a bad payload has no side effects
        sign_actions(rfc)
        refresh_signature(rfc)
        content = dumps_rfc(rfc)

        backend = self.backend
        await backend.create_workspace(identifier, backend.base_branch)

        try:
            await backend.create_artifact(identifier, content)
        except BackendError:
            logger.error(f"Failed to write file for RFC {identifier}, starting revoke process...")
            await self._revoke(identifier)
            raise

        try:
            await backend.open_review_request(identifier, backend.base_branch)
        except BackendError:
            logger.error(f"Failed to open review request for RFC {identifier}, starting revoke process...")
            await self._revoke(identifier)
            raise

        logger.info(f"Submitted RFC {identifier} with {len(rfc.actions)} actions")
        return identifier

    async def _revoke(self, identifier: str) -> None:
        try:
            await self.backend.delete_workspace(identifier)
        except BackendError as e:
            logger.warning(f"Unable to delete workspace for RFC {identifier}, please delete manually: {e}")
        else:
            logger.info(f"Successfully revoked RFC {identifier}")

    async def update(self, identifier: str, new_rfc: RFC) -> str:
        """
        Replace the stored RFC with ``new_rfc``.

        Comments from the stored version are carried over; every other
        action must be resubmitted. All approvals on the review request
        are dismissed so that changed content needs re-approval.
        """
        backend = self.backend
        request = await backend.get_review_request(identifier)
        existing = await self._fetch_rfc(backend, identifier)

        new_rfc.identifier = identifier
        sign_actions(new_rfc)
        carried = carry_persistent_actions(new_rfc, existing)
        refresh_signature(new_rfc)

        await backend.update_artifact(request, dumps_rfc(new_rfc))

        reviews = await backend.list_reviews(request)
        dismissed = 0
        for review in reviews:
            if review.is_approval:
                await backend.dismiss_review(request, review, DISMISSAL_MESSAGE)
                dismissed += 1

        logger.info(
            f"Updated RFC {identifier}: {len(new_rfc.actions)} actions "
            f"({carried} carried over), {dismissed} approvals dismissed"
        )
        return identifier

    # =========================================================================
    # Review
    # =========================================================================

    async def review(
        self,
        identifier: str,
        review_type: ReviewType,
        top_level_comment: str = "",
        comments: Mapping[str, Sequence[str]] | None = None,
        load_on_approval: bool = False,
    ) -> str:
        """
        Record a review on the RFC and submit it to the backend.

        COMMENT and REQUEST_CHANGES reviews need a top-level or inline
        comment. An APPROVE with ``load_on_approval`` starts the
        load-and-merge sequence in the background.
        """
        comments = comments or {}
        has_inline = any(texts for texts in comments.values())
        if review_type in COMMENT_REQUIRED_REVIEW_TYPES and not top_level_comment and not has_inline:
            raise ValidationError(
                f"Review of type {review_type.value} must include a top level comment or inline comments"
            )

        backend = self.backend
        request = await backend.get_review_request(identifier)
        login = await backend.get_user_login()
        rfc = await self._fetch_rfc(backend, identifier)
        rfc_signature = rfc.signature

        attach_comments(rfc, comments, login)

        if review_type != ReviewType.COMMENT or top_level_comment:
            key = DataKey.COMMENTER if review_type == ReviewType.COMMENT else DataKey.REVIEWER
            data: dict[str, Any] = {key.value: login}
            if top_level_comment:
                data[DataKey.COMMENT.value] = top_level_comment
            append_action(rfc, Action(
                action_type=ActionType(review_type.value.lower()),
                target=Target.for_signature(TargetType.RFC, rfc_signature),
                data=data,
            ))

        await self._persist(backend, request, rfc)

        inline = tuple(text for texts in comments.values() for text in texts)
        await backend.create_review(request, ReviewSubmission(
            review_type=review_type,
            body=top_level_comment,
            inline_comments=inline,
        ))
        logger.info(f"Reviewed RFC {identifier} as {review_type.value} by {login}")

        if review_type == ReviewType.APPROVE and load_on_approval:
            self._spawn(
                self.load_and_merge(identifier, request, rfc),
                name=f"load-and-merge-{identifier}",
            )
            return (
                f"Successfully approved RFC {identifier}. A load request was submitted. "
                f"You may query the load status through the /status endpoint."
            )

        return f"Successfully reviewed RFC {identifier} with type of '{review_type.value}'"

    # =========================================================================
    # Load / Merge
    # =========================================================================

    async def request_load(self, identifier: str) -> str:
        """
        Record a load request and start the load in the background.

        Only setup failures reach the caller; the load itself reports
        through the load status.
        """
        backend = self.backend
        login = await backend.get_user_login()
        request = await backend.get_review_request(identifier)
        rfc = await self._fetch_rfc(backend, identifier)

        upsert_load_status(rfc, LoadStatus.LOAD_REQUESTED, login)
        await self._persist(backend, request, rfc)

        self._spawn(
            self.load(identifier, request, rfc, login, backend=backend),
            name=f"load-{identifier}",
        )
        return (
            f"Submitted load request for RFC {identifier}. "
            f"You may query the load status through the /status endpoint."
        )

    async def load_and_merge(self, identifier: str, request: ReviewRequest, rfc: RFC) -> bool:
        """
        Load the RFC and merge it, provided the request is mergeable.

        Returns False when the request is not mergeable (load status
        becomes not_applicable). If mergeability cannot be resolved the
        load status becomes failed and the error is re-raised. Raises
        ConsistencyError when the load succeeded but the request can no
        longer be merged.
        """
        backend = self.machine_backend
        login = await backend.get_user_login()

        try:
            upsert_load_status(rfc, LoadStatus.LOAD_REQUESTED, login)
            await self._persist(backend, request, rfc)

            # Mergeable is loadable: nothing is loaded that could not be merged
            mergeable = await self._mergeable(backend, request)
        except (ConsistencyError, BackendError) as e:
            await self._record_load_failure(identifier, backend, request, rfc, login, e)
            raise

        if not mergeable:
            logger.warning(f"Attempted to load and merge RFC {identifier}, but it is not mergeable")
            upsert_load_status(rfc, LoadStatus.NOT_APPLICABLE, login)
            await self._persist(backend, request, rfc)
            return False

        await self.load(identifier, request, rfc, login, backend=backend)

        # Loading rewrote the artifact, so earlier checks no longer apply
        if not await self._mergeable(backend, request):
            logger.error(f"Attempted to merge RFC {identifier}, but it is not mergeable - LOADED BUT NOT MERGED")
            raise ConsistencyError(f"RFC {identifier} was loaded but could not be merged")

        await self._merge_and_tag(backend, request, identifier)
        return True

    async def load(
        self,
        identifier: str,
        request: ReviewRequest,
        rfc: RFC,
        requester: str,
        backend: RepositoryBackend | None = None,
    ) -> None:
        """Hand the RFC to the schema store, recording loading/successful/failed."""
        backend = backend or self.machine_backend

        try:
            upsert_load_status(rfc, LoadStatus.LOADING, requester)
            await self._persist(backend, request, rfc)
            await self.schema_store.load(identifier, dumps_rfc(rfc))
        except (SchemaStoreError, BackendError) as e:
            logger.exception(f"Load failed for RFC {identifier}")
            await self._record_load_failure(identifier, backend, request, rfc, requester, e)
            raise

        upsert_load_status(rfc, LoadStatus.SUCCESSFUL, requester)
        await self._persist(backend, request, rfc)
        logger.info(f"Loaded RFC {identifier}")

    async def _record_load_failure(
        self,
        identifier: str,
        backend: RepositoryBackend,
        request: ReviewRequest,
        rfc: RFC,
        requester: str,
        error: Exception,
    ) -> None:
        """Mark the load failed so /status can report it; a failed write is only logged."""
        upsert_load_status(rfc, LoadStatus.FAILED, requester, note=load_failure_note(error))
        try:
            await self._persist(backend, request, rfc)
        except BackendError as e:
            logger.error(f"Unable to record failed load for RFC {identifier}: {e}")

    async def merge(self, identifier: str) -> str:
        """Merge the RFC's review request and tag the result with the identifier."""
        backend = self.machine_backend
        request = await backend.get_review_request(identifier)
        await self._merge_and_tag(backend, request, identifier)
        return f"Successfully merged and tagged RFC {identifier}"

    async def _merge_and_tag(self, backend: RepositoryBackend, request: ReviewRequest, identifier: str) -> None:
        revision = await backend.merge_review_request(request)
        await backend.create_tag(revision, identifier)
        logger.info(f"Merged RFC {identifier} at {revision} and tagged it")

    async def _mergeable(self, backend: RepositoryBackend, request: ReviewRequest) -> bool:
        return await resolve_mergeability(
            backend,
            request,
            retry_count=self.retry_count,
            wait_seconds=self.wait_seconds,
            sleep=self._sleep,
        )

    # =========================================================================
    # Read paths
    # =========================================================================

    async def status(self, identifier: str) -> str:
        """Return the current load status of the RFC, or "none"."""
        rfc = await self._fetch_rfc(self.machine_backend, identifier)
        return current_load_status(rfc) or NO_LOAD_STATUS

    async def list_rfcs(
        self,
        count: int,
        state: str = RequestState.ALL.value,
        owner: str | None = None,
        merged: bool | None = None,
    ) -> list[dict[str, str]]:
        """List RFCs as ordered {identifier: title} pairs."""
        requests = await self.machine_backend.list_review_requests(
            state or RequestState.ALL.value, count, owner=owner, merged=merged
        )
        return [{r.workspace: r.title} for r in requests]

    async def get_contents(self, identifier: str) -> str:
        """Return the raw stored RFC text."""
        artifact = await self.machine_backend.get_artifact(identifier)
        return artifact.content

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _fetch_rfc(self, backend: RepositoryBackend, identifier: str) -> RFC:
        artifact = await backend.get_artifact(identifier)
        try:
            return loads_rfc(artifact.content, identifier=identifier)
        except ArtifactParseError:
            logger.error(f"Unable to parse stored content for RFC {identifier}")
            raise

    async def _persist(self, backend: RepositoryBackend, request: ReviewRequest, rfc: RFC) -> None:
        refresh_signature(rfc)
        await backend.update_artifact(request, dumps_rfc(rfc))

    # =========================================================================
    # Background tasks
    # =========================================================================

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """
        Run ``coro`` as a detached task.

        The task is not awaited by the caller, so cancelling the
        originating request does not cancel it.
        """
        task = asyncio.create_task(self._run_detached(coro, name), name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _run_detached(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            logger.warning(f"Background task {name} cancelled")
            raise
        except Exception:
            # Nobody is attached to receive this error
            logger.exception(f"Background task {name} failed")

    @property
    def pending_tasks(self) -> int:
        return len(self._background)

    async def join_background(self) -> None:
        """Wait until every background task has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel background tasks still running at process shutdown."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} background tasks")
