"""
RFC Workflow

Orchestrates the RFC lifecycle (submit, update, review, load, merge)
against a repository backend, including the background load-then-merge
sequence and its mergeability polling.
"""

from .identifiers import IdentifierFactory, sequential_identifiers, time_identifier
from .mergeability import resolve_mergeability
from .orchestrator import NO_LOAD_STATUS, WorkflowOrchestrator
from .schema_store import HttpSchemaStore, LoggingSchemaStore, SchemaStore

__all__ = [
    "IdentifierFactory",
    "sequential_identifiers",
    "time_identifier",
    "resolve_mergeability",
    "NO_LOAD_STATUS",
    "WorkflowOrchestrator",
    "HttpSchemaStore",
    "LoggingSchemaStore",
    "SchemaStore",
]
