"""
RFC Service - Schema Change Request Workflow

A change-request lifecycle for a shared data schema, backed by a
version-control hosting service as the system of record:
- Append-only, content-addressed action ledger per RFC
- Submit / update / review / load / merge orchestration
- Mergeability polling against eventually-consistent backend state
"""

__version__ = "0.1.0"
