"""Content signing for actions and RFCs."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from ..errors import SigningError
from .serializer import action_to_dict, rfc_to_dict
from .types import RFC, Action


def canonical_bytes(payload: Any) -> bytes:
    """
    Canonical JSON encoding used as hash input.

    Keys are sorted and separators are compact so that structurally
    identical content always encodes to the same bytes.
    """
    try:
        text = json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
        # Lone surrogates survive dumps but not the UTF-8 encode
        return text.encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SigningError(f"Unable to serialize entity for signing: {e}") from e


def sign(entity: Action | RFC) -> str:
    """
    Compute the SHA-256 hex signature of an action or RFC.

    The entity's own signature field is excluded from the hash input.
    For an RFC the hash covers its actions including their signatures.
    """
    if isinstance(entity, Action):
        payload = action_to_dict(entity, include_signature=False)
    elif isinstance(entity, RFC):
        payload = rfc_to_dict(entity, include_signature=False)
    else:
        raise SigningError(f"Cannot sign entity of type {type(entity).__name__}")

    return hashlib.sha256(canonical_bytes(payload)).hexdigest()
