"""
RFC Action Ledger

Append-only, content-addressed log of typed actions that makes up an RFC.
Actions and RFCs are signed with a SHA-256 hash of their canonical JSON
form; comments and reviews are ordinary actions targeting other actions
or the RFC itself.
"""

from .types import (
    SIGNATURE_LOOKUP_KEY,
    RFC,
    Action,
    ActionType,
    DataKey,
    LoadStatus,
    Target,
    TargetType,
)
from .signing import canonical_bytes, sign
from .ledger import (
    PERSISTENT_ACTION_TYPES,
    append_action,
    attach_comments,
    carry_persistent_actions,
    current_load_status,
    refresh_signature,
    sign_actions,
    upsert_load_status,
)
from .serializer import dumps_rfc, loads_rfc, rfc_from_dict, rfc_to_dict

__all__ = [
    "SIGNATURE_LOOKUP_KEY",
    "RFC",
    "Action",
    "ActionType",
    "DataKey",
    "LoadStatus",
    "Target",
    "TargetType",
    "canonical_bytes",
    "sign",
    "PERSISTENT_ACTION_TYPES",
    "append_action",
    "attach_comments",
    "carry_persistent_actions",
    "current_load_status",
    "refresh_signature",
    "sign_actions",
    "upsert_load_status",
    "dumps_rfc",
    "loads_rfc",
    "rfc_from_dict",
    "rfc_to_dict",
]
