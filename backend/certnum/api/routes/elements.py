"""Element Routes — display settings of certificate number elements.

Invariants:
    - Unknown display modes are rejected on write (400)
    - Preview never assigns a number
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from certnum.schemas.display import (
    ElementCreate, ElementDisplayUpdate, ElementResponse, PreviewResponse,
)
from certnum.services.registry import Services, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/elements", tags=["elements"])


@router.post(
    "", response_model=ElementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_element(
    body: ElementCreate, services: Services = Depends(get_services),
):
    return await services.elements.create(
        body.template_id, body.name, body.display, body.width,
    )


@router.get("/{element_id}", response_model=ElementResponse)
async def get_element(
    element_id: UUID, services: Services = Depends(get_services),
):
    return await services.elements.get(element_id)


@router.put("/{element_id}/display", response_model=ElementResponse)
async def update_element_display(
    element_id: UUID,
    body: ElementDisplayUpdate,
    services: Services = Depends(get_services),
):
    return await services.elements.update_display(element_id, body.display)


@router.get("/{element_id}/preview", response_model=PreviewResponse)
async def preview_element(
    element_id: UUID, services: Services = Depends(get_services),
):
    """Sample value for the template editor (next number or a random code)."""
    return await services.elements.preview(element_id)
