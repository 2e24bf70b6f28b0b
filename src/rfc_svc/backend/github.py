"""GitHub repository backend (REST API v3 over httpx)."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from ..errors import BackendConnectionError, BackendError, BackendNotFoundError
from .base import RepositoryBackend
from .types import Artifact, RequestState, Review, ReviewRequest, ReviewSubmission

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
MAX_PAGE_SIZE = 100

# Inline review comments all target the single line of the RFC file
INLINE_COMMENT_POSITION = 1


class GitHubBackend(RepositoryBackend):
    """
    Repository backend for GitHub.

    Config:
        owner: Account or organization that owns the tracking repository
        repository: Tracking repository name
        token: Access token; the authenticated identity is the acting user
        base_branch: Base line that RFC pull requests target
        rfc_directory / rfc_file_name: artifact lives at <dir>/<workspace>/<file>
    """

    def __init__(
        self,
        owner: str,
        repository: str,
        token: str,
        base_branch: str = "main",
        api_url: str = GITHUB_API_URL,
        rfc_directory: str = "RFC",
        rfc_file_name: str = "RFC.json",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.owner = owner
        self.repository = repository
        self._base_branch = base_branch
        self.rfc_directory = rfc_directory
        self.rfc_file_name = rfc_file_name
        self._client = httpx.AsyncClient(
            base_url=api_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    @property
    def provider(self) -> str:
        return "github"

    @property
    def base_branch(self) -> str:
        return self._base_branch

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repository}"

    def artifact_path(self, workspace: str) -> str:
        return f"{self.rfc_directory}/{workspace}/{self.rfc_file_name}"

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Issue a request and translate transport and HTTP failures."""
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.ConnectError as e:
            raise BackendConnectionError(f"Failed to connect to GitHub: {e}") from e
        except httpx.TimeoutException as e:
            raise BackendConnectionError(f"GitHub request timeout: {method} {path}") from e
        except httpx.HTTPError as e:
            raise BackendError(f"GitHub request failed: {e}") from e

        if response.status_code == 404:
            raise BackendNotFoundError(f"GitHub resource not found: {method} {path}", status_code=404)
        if response.status_code >= 400:
            logger.error(
                f"GitHub API error: {method} {path} -> {response.status_code} {response.text[:200]}"
            )
            raise BackendError(
                f"GitHub API error: {response.status_code} on {method} {path}",
                status_code=response.status_code,
            )
        return response

    # =========================================================================
    # Workspaces and artifacts
    # =========================================================================

    async def create_workspace(self, name: str, base: str) -> None:
        response = await self._request("GET", f"{self._repo_path}/branches/{base}")
        base_sha = response.json()["commit"]["sha"]

        await self._request(
            "POST",
            f"{self._repo_path}/git/refs",
            json={"ref": f"refs/heads/{name}", "sha": base_sha},
        )
        logger.info(f"Created branch {name} from {base}")

    async def delete_workspace(self, name: str) -> None:
        await self._request("DELETE", f"{self._repo_path}/git/refs/heads/{name}")
        logger.info(f"Deleted branch {name}")

    async def create_artifact(self, workspace: str, content: str) -> None:
        await self._request(
            "PUT",
            f"{self._repo_path}/contents/{self.artifact_path(workspace)}",
            json={
                "message": "init.",
                "content": _encode(content),
                "branch": workspace,
            },
        )

    async def get_artifact(self, workspace: str) -> Artifact:
        response = await self._request(
            "GET",
            f"{self._repo_path}/contents/{self.artifact_path(workspace)}",
            params={"ref": workspace},
        )
        data = response.json()
        try:
            content = base64.b64decode(data["content"]).decode("utf-8")
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Unable to extract file content for {workspace}: {e}") from e
        return Artifact(content=content, revision=data.get("sha", ""))

    async def update_artifact(self, request: ReviewRequest, content: str) -> None:
        # The current blob sha is required; a stale one is rejected by GitHub
        current = await self.get_artifact(request.workspace)
        await self._request(
            "PUT",
            f"{self._repo_path}/contents/{self.artifact_path(request.workspace)}",
            json={
                "message": "update.",
                "content": _encode(content),
                "branch": request.workspace,
                "sha": current.revision,
            },
        )

    # =========================================================================
    # Pull requests
    # =========================================================================

    async def open_review_request(self, workspace: str, base: str) -> ReviewRequest:
        response = await self._request(
            "POST",
            f"{self._repo_path}/pulls",
            json={
                "title": f"RFC: {workspace}",
                "head": workspace,
                "base": base,
                "body": f"Automated creation of RFC {workspace} PR",
            },
        )
        return self._to_review_request(response.json())

    async def get_review_request(self, workspace: str) -> ReviewRequest:
        response = await self._request(
            "GET",
            f"{self._repo_path}/pulls",
            params={"state": RequestState.ALL.value, "head": f"{self.owner}:{workspace}"},
        )
        pulls = response.json()
        if len(pulls) != 1:
            raise BackendNotFoundError(
                f"Expected exactly one pull request for {workspace}, found {len(pulls)}"
            )
        return self._to_review_request(pulls[0])

    async def list_review_requests(
        self,
        state: str,
        count: int,
        owner: str | None = None,
        merged: bool | None = None,
    ) -> list[ReviewRequest]:
        per_page = MAX_PAGE_SIZE if count == -1 else min(count, MAX_PAGE_SIZE)
        if per_page <= 0:
            return []

        results: list[ReviewRequest] = []
        page = 1
        while count == -1 or len(results) < count:
            response = await self._request(
                "GET",
                f"{self._repo_path}/pulls",
                params={"state": state or RequestState.ALL.value, "page": page, "per_page": per_page},
            )
            for item in response.json():
                request = self._to_review_request(item)
                if owner is not None and request.author != owner:
                    continue
                if merged is not None and request.merged != merged:
                    continue
                if count != -1 and len(results) >= count:
                    break
                results.append(request)

            if "next" not in response.links:
                break
            page += 1

        return results

    async def get_combined_status(self, request: ReviewRequest) -> str:
        response = await self._request(
            "GET", f"{self._repo_path}/commits/{request.workspace}/status"
        )
        return response.json().get("state", "")

    async def refresh_review_request(self, request: ReviewRequest) -> ReviewRequest:
        # The list endpoint never carries mergeable_state; only a direct fetch does
        response = await self._request("GET", f"{self._repo_path}/pulls/{request.number}")
        return self._to_review_request(response.json())

    async def merge_review_request(self, request: ReviewRequest) -> str:
        response = await self._request(
            "PUT", f"{self._repo_path}/pulls/{request.number}/merge", json={}
        )
        return response.json()["sha"]

    # =========================================================================
    # Reviews
    # =========================================================================

    async def list_reviews(self, request: ReviewRequest) -> list[Review]:
        response = await self._request(
            "GET",
            f"{self._repo_path}/pulls/{request.number}/reviews",
            params={"per_page": MAX_PAGE_SIZE},
        )
        return [
            Review(
                review_id=item["id"],
                state=item.get("state", ""),
                author=(item.get("user") or {}).get("login"),
            )
            for item in response.json()
        ]

    async def create_review(self, request: ReviewRequest, submission: ReviewSubmission) -> None:
        path = self.artifact_path(request.workspace)
        payload: dict[str, Any] = {
            "event": submission.review_type.value,
            "comments": [
                {"path": path, "body": text, "position": INLINE_COMMENT_POSITION}
                for text in submission.inline_comments
            ],
        }
        if submission.body:
            payload["body"] = submission.body

        await self._request(
            "POST", f"{self._repo_path}/pulls/{request.number}/reviews", json=payload
        )

    async def dismiss_review(self, request: ReviewRequest, review: Review, message: str) -> None:
        await self._request(
            "PUT",
            f"{self._repo_path}/pulls/{request.number}/reviews/{review.review_id}/dismissals",
            json={"message": message, "event": "DISMISS"},
        )

    # =========================================================================
    # Identity and tags
    # =========================================================================

    async def get_user_login(self) -> str:
        response = await self._request("GET", "/user")
        return response.json()["login"]

    async def create_tag(self, revision: str, name: str) -> None:
        await self._request(
            "POST",
            f"{self._repo_path}/git/refs",
            json={"ref": f"refs/tags/{name}", "sha": revision},
        )
        logger.info(f"Tagged {revision} as {name}")

    def _to_review_request(self, data: dict[str, Any]) -> ReviewRequest:
        return ReviewRequest(
            provider=self.provider,
            number=data["number"],
            workspace=(data.get("head") or {}).get("ref", ""),
            title=data.get("title", ""),
            author=(data.get("user") or {}).get("login"),
            merged=bool(data.get("merged") or data.get("merged_at")),
            state=data.get("state", RequestState.OPEN.value),
            mergeable_state=data.get("mergeable_state"),
        )


def _encode(content: str) -> str:
    return base64.b64encode(content.encode("utf-8")).decode("ascii")
