"""RFC serialization - JSON round-trip for stored RFC artifacts."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..errors import ArtifactParseError
from .types import RFC, Action, ActionType, Target, TargetType

logger = logging.getLogger(__name__)


def target_to_dict(target: Target) -> dict[str, Any]:
    """Serialize a target. Empty lookup fields are omitted."""
    data: dict[str, Any] = {
        "targetType": target.target_type.value,
        "targetDescriptor": target.target_descriptor,
    }
    if target.lookup_key:
        data["lookupKey"] = target.lookup_key
    if target.lookup_value:
        data["lookupValue"] = target.lookup_value
    return data


def action_to_dict(action: Action, include_signature: bool = True) -> dict[str, Any]:
    """Serialize an action, optionally leaving out its own signature."""
    data: dict[str, Any] = {
        "actionType": action.action_type.value,
        "target": target_to_dict(action.target),
    }
    if include_signature and action.signature:
        data["signature"] = action.signature
    if action.data:
        data["data"] = action.data
    return data


def rfc_to_dict(rfc: RFC, include_signature: bool = True) -> dict[str, Any]:
    """Serialize an RFC. Action signatures are always kept."""
    data: dict[str, Any] = {
        "actions": [action_to_dict(a) for a in rfc.actions],
    }
    if include_signature and rfc.signature:
        data["signature"] = rfc.signature
    if rfc.identifier:
        data["identifier"] = rfc.identifier
    return data


def dumps_rfc(rfc: RFC) -> str:
    """Serialize an RFC to the JSON text stored in its workspace."""
    return json.dumps(rfc_to_dict(rfc))


def _parse_target(data: dict[str, Any]) -> Target:
    return Target(
        target_type=TargetType(data["targetType"]),
        target_descriptor=data.get("targetDescriptor", "") or "",
        lookup_key=data.get("lookupKey", "") or "",
        lookup_value=data.get("lookupValue", "") or "",
    )


def _parse_action(data: dict[str, Any]) -> Action:
    return Action(
        action_type=ActionType(data["actionType"]),
        target=_parse_target(data.get("target") or {"targetType": TargetType.RFC.value}),
        data=dict(data.get("data") or {}),
        signature=data.get("signature", "") or "",
    )


def rfc_from_dict(data: dict[str, Any]) -> RFC:
    """Parse an RFC from its dictionary form."""
    if not isinstance(data, dict) or not isinstance(data.get("actions"), list):
        raise ArtifactParseError("RFC content must be an object with an 'actions' list")

    try:
        actions = [_parse_action(a) for a in data["actions"]]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ArtifactParseError(f"Malformed action in RFC content: {e}") from e

    return RFC(
        actions=actions,
        signature=data.get("signature", "") or "",
        identifier=data.get("identifier", "") or "",
    )


def loads_rfc(content: str, identifier: str = "") -> RFC:
    """
    Parse stored RFC JSON text.

    Raises ArtifactParseError if the text is not a valid RFC. The
    identifier is only used for diagnostics and to fill a missing field.
    """
    try:
        data = json.loads(content)
    except (TypeError, ValueError) as e:
        logger.error(f"Unable to parse stored RFC content for {identifier or '<unknown>'}: {e}")
        raise ArtifactParseError(f"Stored RFC content is not valid JSON: {e}") from e

    rfc = rfc_from_dict(data)
    if not rfc.identifier and identifier:
        rfc.identifier = identifier
    return rfc
