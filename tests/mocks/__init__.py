"""In-memory test doubles for the RFC service."""

from .factories import make_rfc, no_sleep
from .fake_backend import FakeBackend, RecordingSchemaStore

__all__ = ["FakeBackend", "RecordingSchemaStore", "make_rfc", "no_sleep"]
