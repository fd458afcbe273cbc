"""Sequence Routes — explicit compaction and invariant check of the numbering sequence."""

import logging

from fastapi import APIRouter, Depends

from certnum.schemas.issue import CompactionResponse, SequenceStatusResponse
from certnum.services.registry import Services, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sequence", tags=["sequence"])


@router.get("", response_model=SequenceStatusResponse)
async def sequence_status(services: Services = Depends(get_services)):
    """Count, max and contiguity of the sequence. 500 on duplicate numbers."""
    return SequenceStatusResponse.from_status(await services.allocator.verify())


@router.post("/compact", response_model=CompactionResponse)
async def compact_sequence(services: Services = Depends(get_services)):
    """Renumber all numbered issues to 1..N (used after batch deletions)."""
    return CompactionResponse.from_result(await services.allocator.compact())
