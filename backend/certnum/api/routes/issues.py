"""Issue Routes — issuance, numbering, deletion and display of certificates.

Invariants:
    - POST /issues stores the issue and numbers it when assign_on_issue is set
    - POST /issues/{id}/number is idempotent
    - DELETE /issues/{id} deletes and compacts before responding
    - Errors surface as CertnumError envelopes via the global handlers
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from certnum.schemas.display import DisplayValueResponse
from certnum.schemas.issue import (
    CompactionResponse, IssueCreate, IssueResponse, NumberResponse,
)
from certnum.services.registry import Services, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/issues", tags=["issues"])


@router.post(
    "", response_model=IssueResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_issue(
    body: IssueCreate, services: Services = Depends(get_services),
):
    """Issue a certificate."""
    record = await services.issues.issue(
        body.user_id, body.template_id, body.course_id,
    )
    return IssueResponse.from_record(record)


@router.get("/{issue_id}", response_model=IssueResponse)
async def get_issue(
    issue_id: UUID, services: Services = Depends(get_services),
):
    return IssueResponse.from_record(await services.issues.get(issue_id))


@router.post("/{issue_id}/number", response_model=NumberResponse)
async def assign_number(
    issue_id: UUID, services: Services = Depends(get_services),
):
    """Assign a certificate number (returns the existing one if already numbered)."""
    record = await services.issues.get(issue_id)
    number = await services.allocator.assign(record)
    return NumberResponse(id=str(issue_id), certificate_number=number)


@router.delete("/{issue_id}", response_model=CompactionResponse)
async def delete_issue(
    issue_id: UUID, services: Services = Depends(get_services),
):
    """Delete an issue and compact the remaining numbers."""
    result = await services.issues.delete(issue_id)
    return CompactionResponse.from_result(result)


@router.get("/{issue_id}/display", response_model=DisplayValueResponse)
async def display_issue(
    issue_id: UUID,
    element_id: UUID | None = Query(None),
    services: Services = Depends(get_services),
):
    """Display value of an issue. May assign a number on first render."""
    value, settings = await services.elements.render(element_id, issue_id)
    mode = settings.display.name.lower() if settings.display else "code"
    return DisplayValueResponse(issue_id=str(issue_id), value=value, mode=mode)
