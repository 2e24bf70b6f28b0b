"""Backend registry - maps provider names to backend factories."""

from __future__ import annotations

from typing import Callable

from ..config import RepositoryConfig
from ..errors import ConfigurationError
from .base import RepositoryBackend
from .github import GitHubBackend

BackendFactory = Callable[[RepositoryConfig, str], RepositoryBackend]


def _github_factory(repository: RepositoryConfig, token: str) -> RepositoryBackend:
    return GitHubBackend(
        owner=repository.owner,
        repository=repository.name,
        token=token,
        base_branch=repository.base_branch,
        api_url=repository.api_url,
        rfc_directory=repository.rfc_directory,
        rfc_file_name=repository.rfc_file_name,
        timeout=repository.timeout_seconds,
    )


_FACTORIES: dict[str, BackendFactory] = {
    "github": _github_factory,
}


def register_backend(provider: str, factory: BackendFactory) -> None:
    """Register a backend factory for a hosting provider."""
    _FACTORIES[provider] = factory


def create_backend(repository: RepositoryConfig, token: str) -> RepositoryBackend:
    """
    Build the backend for the configured provider.

    Raises:
        ConfigurationError: If no backend is registered for the provider
    """
    factory = _FACTORIES.get(repository.provider)
    if factory is None:
        raise ConfigurationError(f"No backend registered for provider: {repository.provider}")
    return factory(repository, token)
