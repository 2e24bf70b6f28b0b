"""
Action ledger operations.

An RFC is never edited field by field by the workflow. Operations here
append new actions (signed on the way in), carry comments over from a
previous version, and keep the single load action up to date. The RFC
signature is refreshed explicitly, once per batch, by the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from .signing import sign
from .types import RFC, Action, ActionType, DataKey, LoadStatus, Target, TargetType

logger = logging.getLogger(__name__)

# Action types that survive an update without being resubmitted
PERSISTENT_ACTION_TYPES = frozenset({ActionType.COMMENT})


def sign_actions(rfc: RFC) -> None:
    """Sign every action of the RFC in place."""
    for action in rfc.actions:
        action.signature = sign(action)


def refresh_signature(rfc: RFC) -> str:
    """Recompute and store the RFC signature from its current actions."""
    rfc.signature = sign(rfc)
    return rfc.signature


def append_action(rfc: RFC, action: Action) -> Action:
    """
    Sign the action and append it to the RFC.

    The RFC's own signature is left untouched; call ``refresh_signature``
    after the last append of a batch.
    """
    action.signature = sign(action)
    rfc.actions.append(action)
    return action


def carry_persistent_actions(new_rfc: RFC, old_rfc: RFC) -> int:
    """
    Copy persistent (comment) actions from ``old_rfc`` into ``new_rfc``.

    Carried actions keep their original signatures. Every other action
    type must be resubmitted by the client on update or it is dropped.
    Returns the number of actions carried over.
    """
    carried = 0
    for action in old_rfc.actions:
        if action.action_type in PERSISTENT_ACTION_TYPES:
            new_rfc.actions.append(action)
            carried += 1
    return carried


def attach_comments(
    rfc: RFC,
    comments_by_signature: Mapping[str, Sequence[str]],
    author: str,
) -> list[Action]:
    """
    Append one comment action per comment text.

    Comments whose key matches an action signature target that action.
    Anything else targets the RFC itself; when the key is not the RFC's
    own signature either, the comment carries a "not found" note so it
    is never silently dropped.
    """
    added: list[Action] = []
    for target_signature, texts in comments_by_signature.items():
        matched = rfc.find_action(target_signature) is not None

        for text in texts:
            data = {
                DataKey.COMMENT.value: text,
                DataKey.COMMENTER.value: author,
            }
            if matched:
                target = Target.for_signature(TargetType.ACTION, target_signature)
            else:
                target = Target.for_signature(TargetType.RFC, rfc.signature)
                if target_signature != rfc.signature:
                    data[DataKey.NOTE.value] = (
                        f"Target with signature {target_signature} was not found in this RFC"
                    )

            added.append(Action(action_type=ActionType.COMMENT, target=target, data=data))

    for action in added:
        append_action(rfc, action)

    return added


def upsert_load_status(
    rfc: RFC,
    status: LoadStatus | str,
    requester: str,
    note: str | None = None,
) -> Action:
    """
    Record the load status on the RFC's single load action.

    The existing load action is updated and re-signed in place; a new
    one is appended only when none exists. A note from an earlier
    status is cleared unless a new one is given.
    """
    status_value = status.value if isinstance(status, LoadStatus) else status

    for action in rfc.actions_of_type(ActionType.LOAD):
        action.data[DataKey.STATUS.value] = status_value
        action.data[DataKey.REQUESTER.value] = requester
        if note:
            action.data[DataKey.NOTE.value] = note
        else:
            action.data.pop(DataKey.NOTE.value, None)
        action.signature = sign(action)
        return action

    data = {
        DataKey.STATUS.value: status_value,
        DataKey.REQUESTER.value: requester,
    }
    if note:
        data[DataKey.NOTE.value] = note
    load_action = Action(
        action_type=ActionType.LOAD,
        target=Target(target_type=TargetType.RFC),
        data=data,
    )
    return append_action(rfc, load_action)


def current_load_status(rfc: RFC) -> str | None:
    """Return the status recorded on the load action, or None."""
    for action in rfc.actions_of_type(ActionType.LOAD):
        status = action.data.get(DataKey.STATUS.value)
        return None if status is None else str(status)
    return None
