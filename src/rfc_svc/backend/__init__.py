"""
Repository Backend

Capability interface over a version-control hosting service (branches,
files, pull requests, reviews, tags) with one implementation per provider.
"""

from .types import (
    CHECKS_PENDING_STATE,
    MERGE_STATE_CLEAN,
    MERGE_STATE_UNKNOWN,
    Artifact,
    RequestState,
    Review,
    ReviewRequest,
    ReviewState,
    ReviewSubmission,
    ReviewType,
)
from .base import RepositoryBackend
from .github import GitHubBackend
from .registry import create_backend, register_backend

__all__ = [
    "CHECKS_PENDING_STATE",
    "MERGE_STATE_CLEAN",
    "MERGE_STATE_UNKNOWN",
    "Artifact",
    "RequestState",
    "Review",
    "ReviewRequest",
    "ReviewState",
    "ReviewSubmission",
    "ReviewType",
    "RepositoryBackend",
    "GitHubBackend",
    "create_backend",
    "register_backend",
]
