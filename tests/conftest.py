"""Shared test fixtures for the RFC service tests."""

import pytest

from mocks import FakeBackend, RecordingSchemaStore, make_rfc, no_sleep

from rfc_svc.ledger import RFC
from rfc_svc.workflow import WorkflowOrchestrator, sequential_identifiers


# =============================================================================
# RFC Fixtures
# =============================================================================

@pytest.fixture
def sample_rfc() -> RFC:
    """Unsigned RFC with two ADD actions."""
    return make_rfc("table", "column")


# =============================================================================
# Backend Fixtures
# =============================================================================

@pytest.fixture
def backend() -> FakeBackend:
    """Backend acting as the requesting user."""
    return FakeBackend(login="alice")


@pytest.fixture
def machine_backend(backend) -> FakeBackend:
    """Service-account backend sharing the user backend's repository state."""
    machine = FakeBackend(login="rfc-bot")
    # Same repository, different identity
    machine.workspaces = backend.workspaces
    machine.artifacts = backend.artifacts
    machine.writes = backend.writes
    machine.requests = backend.requests
    machine.reviews = backend.reviews
    machine.tags = backend.tags
    return machine


@pytest.fixture
def schema_store() -> RecordingSchemaStore:
    return RecordingSchemaStore()


@pytest.fixture
def orchestrator(backend, machine_backend, schema_store) -> WorkflowOrchestrator:
    """Orchestrator with deterministic identifiers and no polling delay."""
    return WorkflowOrchestrator(
        backend=backend,
        machine_backend=machine_backend,
        schema_store=schema_store,
        identifier_factory=sequential_identifiers(),
        retry_count=3,
        wait_seconds=0.0,
        sleep=no_sleep,
    )
