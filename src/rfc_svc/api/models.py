"""Pydantic models for the RFC API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..backend.types import ReviewType
from ..ledger.types import RFC, Action, ActionType, Target, TargetType


# =============================================================================
# Request Body Models
# =============================================================================

class TargetModel(BaseModel):
    """Locator for what an action acts upon."""
    model_config = ConfigDict(populate_by_name=True)

    target_type: TargetType = Field(alias="targetType")
    target_descriptor: str = Field(default="", alias="targetDescriptor")
    lookup_key: str = Field(default="", alias="lookupKey")
    lookup_value: str = Field(default="", alias="lookupValue")

    @model_validator(mode="after")
    def _descriptor_required_for_items(self) -> TargetModel:
        if self.target_type == TargetType.ITEM and not self.target_descriptor:
            raise ValueError("targetDescriptor is required for item targets")
        return self

    def to_target(self) -> Target:
        return Target(
            target_type=self.target_type,
            target_descriptor=self.target_descriptor,
            lookup_key=self.lookup_key,
            lookup_value=self.lookup_value,
        )


class ActionModel(BaseModel):
    """A single schema action."""
    model_config = ConfigDict(populate_by_name=True)

    action_type: ActionType = Field(alias="actionType")
    target: TargetModel
    data: dict[str, Any] = Field(default_factory=dict)

    def to_action(self) -> Action:
        # Client-supplied signatures are never trusted; actions are re-signed
        return Action(
            action_type=self.action_type,
            target=self.target.to_target(),
            data=dict(self.data),
        )


class RFCModel(BaseModel):
    """Body for submitting an RFC: its ordered actions."""
    actions: list[ActionModel] = Field(min_length=1)

    def to_rfc(self) -> RFC:
        return RFC(actions=[a.to_action() for a in self.actions])


class IdentifierBody(BaseModel):
    """Body naming a single RFC (load, merge, status, contents)."""
    model_config = ConfigDict(populate_by_name=True)

    rfc_identifier: str = Field(alias="rfcIdentifier", min_length=1)


class UpdateBody(BaseModel):
    """Body for replacing an RFC's actions."""
    model_config = ConfigDict(populate_by_name=True)

    rfc_identifier: str = Field(alias="rfcIdentifier", min_length=1)
    rfc: RFCModel


class ReviewBody(BaseModel):
    """
    Body for reviewing an RFC.

    ``comments`` maps a target signature (action or RFC) to the comment
    texts for it.
    """
    model_config = ConfigDict(populate_by_name=True)

    rfc_identifier: str = Field(alias="rfcIdentifier", min_length=1)
    type: ReviewType
    top_level_comment: str = Field(default="", alias="topLevelComment")
    comments: dict[str, list[str]] = Field(default_factory=dict)
    load_on_approval: bool = Field(default=False, alias="loadOnApproval")


class GetRfcsBody(BaseModel):
    """Body for listing RFCs. ``count=-1`` returns all of them."""
    count: int = Field(ge=-1)
    state: Literal["open", "closed", "all"] = "all"
    owner: str | None = None
    merged: bool | None = None


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    message: str = "healthy"


class ErrorResponse(BaseModel):
    error: str


class RFCIdentifierResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rfc_identifier: str = Field(alias="rfcIdentifier")


class SuccessResponse(BaseModel):
    success: str


class LoadRequestResponse(BaseModel):
    message: str


class StatusResponse(BaseModel):
    status: str


class RFCListResponse(BaseModel):
    """Ordered identifier -> title mapping plus the number of entries."""
    rfcs: dict[str, str] = Field(default_factory=dict)
    count: int = 0


class RFCContentsResponse(BaseModel):
    body: str = ""
