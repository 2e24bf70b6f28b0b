"""Ledger types - domain types for RFCs, actions and targets."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# Lookup key used when a target is located by its signature
SIGNATURE_LOOKUP_KEY = "signature"


class ActionType(str, Enum):
    """Kind of intent or history an action records."""
    ADD = "add"
    UPDATE = "update"
    COMMENT = "comment"
    LOAD = "load"
    APPROVE = "approve"
    REQUEST_CHANGES = "request_changes"


class TargetType(str, Enum):
    """Kind of entity an action acts upon."""
    ITEM = "item"
    ACTION = "action"
    RFC = "rfc"


class DataKey(str, Enum):
    """Well-known keys inside an action's data mapping."""
    COMMENT = "comment"
    COMMENTER = "commenter"
    NOTE = "note"
    REVIEWER = "reviewer"
    STATUS = "status"
    REQUESTER = "requester"


class LoadStatus(str, Enum):
    """Load progress recorded on the single load action of an RFC."""
    LOAD_REQUESTED = "load_requested"
    NOT_APPLICABLE = "not_applicable"
    LOADING = "loading"
    SUCCESSFUL = "successful"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Target:
    """
    Locates what an action acts upon.

    For item targets the descriptor names the schema entity category.
    Action and rfc targets are conventionally looked up by signature.
    """
    target_type: TargetType
    target_descriptor: str = ""
    lookup_key: str = ""
    lookup_value: str = ""

    @classmethod
    def for_signature(cls, target_type: TargetType, signature: str) -> Target:
        """Build a target that points at an action or RFC by signature."""
        return cls(
            target_type=target_type,
            lookup_key=SIGNATURE_LOOKUP_KEY,
            lookup_value=signature,
        )


@dataclass(slots=True)
class Action:
    """A single unit of intent or history within an RFC."""
    action_type: ActionType
    target: Target
    data: dict[str, Any] = field(default_factory=dict)
    signature: str = ""

    def __str__(self) -> str:
        # Signature left out on purpose
        parts = [f"ActionType: {self.action_type.value}"]
        parts.append(f"Target: {self.target.target_type.value}")
        if self.data:
            parts.append(f"Data: {self.data}")
        return "{" + " ".join(parts) + "}"


@dataclass(slots=True)
class RFC:
    """
    A proposed schema change: an ordered, signed list of actions.

    Order is meaningful, later actions may reference earlier ones by
    signature. The signature must be refreshed after every batch of
    appends (see ``ledger.refresh_signature``).
    """
    actions: list[Action] = field(default_factory=list)
    signature: str = ""
    identifier: str = ""

    def find_action(self, signature: str) -> Action | None:
        """Return the action carrying the given signature, if any."""
        for action in self.actions:
            if action.signature == signature:
                return action
        return None

    def actions_of_type(self, action_type: ActionType) -> list[Action]:
        return [a for a in self.actions if a.action_type == action_type]
