"""FastAPI routes for the RFC workflow.

Handlers only validate input, call the orchestrator and translate the
outcome. Backend failures are logged in full and returned as generic
error messages.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import APIRouter, HTTPException

from ..errors import (
    BackendError,
    ConfigurationError,
    ConsistencyError,
    SigningError,
    ValidationError,
)
from ..workflow.orchestrator import WorkflowOrchestrator
from .models import (
    GetRfcsBody,
    HealthResponse,
    IdentifierBody,
    LoadRequestResponse,
    RFCContentsResponse,
    RFCIdentifierResponse,
    RFCListResponse,
    RFCModel,
    ReviewBody,
    StatusResponse,
    SuccessResponse,
    UpdateBody,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

router = APIRouter(tags=["RFC"])

# Configuration - set during app startup
_orchestrator: WorkflowOrchestrator | None = None


def configure(orchestrator: WorkflowOrchestrator | None) -> None:
    """Configure the routes with the workflow orchestrator."""
    global _orchestrator
    _orchestrator = orchestrator


def _get_orchestrator() -> WorkflowOrchestrator:
    """Get the orchestrator, raising if not configured."""
    if _orchestrator is None:
        # Startup leaves it unset only when configuration is missing
        raise HTTPException(status_code=500, detail="Configuration error occurred")
    return _orchestrator


async def _call(operation: Awaitable[T], failure_message: str, identifier: str | None = None) -> T:
    """Await an orchestrator call, mapping service errors to HTTP errors."""
    context = f" (RFC {identifier})" if identifier else ""
    try:
        return await operation
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except SigningError as e:
        logger.warning(f"Rejected unsignable RFC content{context}: {e}")
        raise HTTPException(status_code=400, detail="Malformed request received") from e
    except ConfigurationError as e:
        logger.error(f"Configuration error{context}: {e}")
        raise HTTPException(status_code=500, detail="Configuration error occurred") from e
    except ConsistencyError as e:
        logger.error(f"{failure_message}{context}: {e}")
        raise HTTPException(status_code=500, detail=f"{failure_message} - inconsistent RFC state") from e
    except BackendError as e:
        logger.error(f"{failure_message}{context}: {e}")
        raise HTTPException(status_code=502, detail=failure_message) from e


# =============================================================================
# Health
# =============================================================================

@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health():
    """Simple health check used to determine if the service is responding."""
    return HealthResponse(message="healthy")


# =============================================================================
# Submit / Update / Review
# =============================================================================

@router.post("/submitRequest", response_model=RFCIdentifierResponse)
async def submit_request(body: RFCModel):
    """Submit a new schema change request."""
    orchestrator = _get_orchestrator()
    identifier = await _call(orchestrator.submit(body.to_rfc()), "Request creation error occurred")
    return RFCIdentifierResponse(rfc_identifier=identifier)


@router.post("/updateRequest", response_model=RFCIdentifierResponse)
async def update_request(body: UpdateBody):
    """
    Replace the actions of an existing RFC.

    Prior comments are kept; every other action must be resent.
    Existing approvals are dismissed.
    """
    orchestrator = _get_orchestrator()
    identifier = await _call(
        orchestrator.update(body.rfc_identifier, body.rfc.to_rfc()),
        "Update request error occurred",
        body.rfc_identifier,
    )
    return RFCIdentifierResponse(rfc_identifier=identifier)


@router.post("/reviewRequest", response_model=SuccessResponse)
async def review_request(body: ReviewBody):
    """Approve, request changes on, or comment on an RFC."""
    orchestrator = _get_orchestrator()
    message = await _call(
        orchestrator.review(
            body.rfc_identifier,
            body.type,
            top_level_comment=body.top_level_comment,
            comments=body.comments,
            load_on_approval=body.load_on_approval,
        ),
        "Review submission error occurred",
        body.rfc_identifier,
    )
    return SuccessResponse(success=message)


# =============================================================================
# Merge / Load / Status
# =============================================================================

@router.post("/mergeRequest", response_model=SuccessResponse)
async def merge_request(body: IdentifierBody):
    """Merge an RFC and tag it for tracking."""
    orchestrator = _get_orchestrator()
    message = await _call(
        orchestrator.merge(body.rfc_identifier), "Merge error occurred", body.rfc_identifier
    )
    return SuccessResponse(success=message)


@router.post("/loadRequest", response_model=LoadRequestResponse)
async def load_request(body: IdentifierBody):
    """Request a load of the RFC; the load itself runs in the background."""
    orchestrator = _get_orchestrator()
    message = await _call(
        orchestrator.request_load(body.rfc_identifier), "Load request error occurred", body.rfc_identifier
    )
    return LoadRequestResponse(message=message)


@router.post("/status", response_model=StatusResponse)
async def status(body: IdentifierBody):
    """Return the current load status of an RFC ("none" if never loaded)."""
    orchestrator = _get_orchestrator()
    load_status = await _call(
        orchestrator.status(body.rfc_identifier), "Status error occurred", body.rfc_identifier
    )
    return StatusResponse(status=load_status)


# =============================================================================
# Listing / Contents
# =============================================================================

@router.post("/getRfcs", response_model=RFCListResponse)
async def get_rfcs(body: GetRfcsBody):
    """List submitted RFCs as identifier -> title, in backend order."""
    orchestrator = _get_orchestrator()
    pairs = await _call(
        orchestrator.list_rfcs(body.count, state=body.state, owner=body.owner, merged=body.merged),
        "Error occurred when retrieving RFCs",
    )

    rfcs: dict[str, str] = {}
    for pair in pairs:
        rfcs.update(pair)
    return RFCListResponse(rfcs=rfcs, count=len(pairs))


@router.post("/getRfcContents", response_model=RFCContentsResponse)
async def get_rfc_contents(body: IdentifierBody):
    """Return the raw stored body of an RFC."""
    orchestrator = _get_orchestrator()
    contents = await _call(
        orchestrator.get_contents(body.rfc_identifier),
        f"Error occurred when querying contents for RFC #{body.rfc_identifier}",
        body.rfc_identifier,
    )
    return RFCContentsResponse(body=contents or "")
