"""Display Selector — chooses between the allocated number and the pass-through code.

Invariants:
    - SHOW_ALLOCATED_NUMBER prints the record's number as a plain decimal string
    - An unnumbered record in that mode is numbered first (render-time write)
    - Any other mode, known or not, prints record.code unchanged
    - preview() never writes to the store

Design Decisions:
    - Lazy assignment delegates to SequenceAllocator.assign: the render path
      gets the same lock and transaction as issuance, never its own counter
    - Renderer is injected: text sinks in tests and scripts, HTML for the
      template editor preview
"""

import html
import logging
from typing import Any

from certnum.core.domain_types import IssuedRecord
from certnum.core.repository_protocols import Renderer
from certnum.schemas.display import DisplaySettings
from certnum.services.issue_service import generate_code
from certnum.services.sequence_allocator import SequenceAllocator

logger = logging.getLogger(__name__)


class TextRenderer:
    """Writes the display value verbatim to a text sink."""

    def render(self, value: str, sink: Any) -> None:
        sink.write(value)


class HtmlRenderer:
    """Writes the display value as escaped HTML for the template editor."""

    def render(self, value: str, sink: Any) -> None:
        sink.write(f'<span class="certificate-number">{html.escape(value)}</span>')


class DisplaySelector:
    """Formats records for output according to element display settings."""

    def __init__(
        self, allocator: SequenceAllocator, renderer: Renderer | None = None,
    ):
        self.allocator = allocator
        self.renderer = renderer or TextRenderer()

    async def format(self, record: IssuedRecord, config: DisplaySettings | None) -> str:
        """Display value for record. May allocate a number (see module invariants)."""
        if config is None or not config.shows_allocated_number:
            return record.code

        number = record.number
        if number is None:
            logger.info(
                "Record has no certificate number at render time; assigning",
                extra={"issue_id": record.id},
            )
            number = await self.allocator.assign(record)
        return str(int(number))

    async def render(
        self, record: IssuedRecord, config: DisplaySettings | None, sink: Any,
    ) -> str:
        value = await self.format(record, config)
        self.renderer.render(value, sink)
        return value

    async def preview(self, config: DisplaySettings | None) -> str:
        """Sample value for the template editor: next number, or a fresh code."""
        if config is not None and config.shows_allocated_number:
            return str(int(await self.allocator.peek_next()))
        return generate_code()
