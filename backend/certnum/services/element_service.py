"""Element Service — persists number-element display settings and renders through them.

Invariants:
    - Display settings are stored encoded (DisplaySettings.encode) and read back
      through DisplaySettings.decode only
    - A width that is unset or non-positive reads back as the default width
    - render() resolves the issue and element, then delegates to DisplaySelector
    - preview() returns the plain value and its HtmlRenderer output, and never writes

Design Decisions:
    - Display mode validated on write: unknown modes are rejected at the API,
      even though decode tolerates them in stored blobs
"""

import io
import logging
from uuid import UUID

from certnum.core.domain_types import DisplayMode
from certnum.core.errors import InvalidDisplaySettingsError, RecordNotFoundError
from certnum.core.repository_protocols import Renderer
from certnum.infrastructure.database import DatabaseSessionManager
from certnum.models.certificate_element import CertificateElement
from certnum.schemas.display import DisplaySettings, ElementResponse, PreviewResponse
from certnum.services.display_selector import DisplaySelector, HtmlRenderer
from certnum.services.issue_service import IssueService

logger = logging.getLogger(__name__)


def settings_for_write(display: int | None) -> DisplaySettings:
    if display is None:
        return DisplaySettings()
    try:
        return DisplaySettings(display=DisplayMode(display))
    except ValueError as e:
        raise InvalidDisplaySettingsError(
            f"Unknown display mode {display}",
        ) from e


def resolve_width(width: int | None, default: int) -> int:
    return width if width and width > 0 else default


class ElementService:
    """CRUD for number elements plus rendering of issues through them."""

    def __init__(
        self,
        manager: DatabaseSessionManager,
        selector: DisplaySelector,
        issues: IssueService,
        default_width: int = 35,
        html_renderer: Renderer | None = None,
    ):
        self.manager = manager
        self.selector = selector
        self.issues = issues
        self.default_width = default_width
        self.html_renderer = html_renderer or HtmlRenderer()

    def to_response(self, element: CertificateElement) -> ElementResponse:
        settings = DisplaySettings.decode(element.data)
        return ElementResponse(
            id=str(element.id),
            template_id=element.template_id,
            name=element.name,
            display=int(settings.display) if settings.display else None,
            width=resolve_width(element.width, self.default_width),
        )

    async def create(
        self, template_id: str, name: str, display: int | None, width: int = 0,
    ) -> ElementResponse:
        settings = settings_for_write(display)
        async with self.manager.transaction() as db:
            element = CertificateElement(
                template_id=template_id, name=name,
                data=settings.encode(), width=width,
            )
            db.add(element)
            await db.flush()
        logger.info(
            "Created certificate number element",
            extra={"element_id": element.id},
        )
        return self.to_response(element)

    async def _load(self, element_id: UUID) -> CertificateElement:
        async with self.manager.session() as db:
            element = await db.get(CertificateElement, element_id)
        if element is None:
            raise RecordNotFoundError("Element", str(element_id))
        return element

    async def get(self, element_id: UUID) -> ElementResponse:
        return self.to_response(await self._load(element_id))

    async def display_settings(self, element_id: UUID) -> DisplaySettings:
        return DisplaySettings.decode((await self._load(element_id)).data)

    async def update_display(
        self, element_id: UUID, display: int | None,
    ) -> ElementResponse:
        settings = settings_for_write(display)
        async with self.manager.transaction() as db:
            element = await db.get(CertificateElement, element_id)
            if element is None:
                raise RecordNotFoundError("Element", str(element_id))
            element.data = settings.encode()
        return self.to_response(element)

    async def render(self, element_id: UUID | None, issue_id: UUID) -> tuple[str, DisplaySettings]:
        """Display value of an issue, through an element or the default mode."""
        if element_id is None:
            settings = DisplaySettings(display=DisplayMode.SHOW_ALLOCATED_NUMBER)
        else:
            settings = await self.display_settings(element_id)
        record = await self.issues.get(issue_id)
        return await self.selector.format(record, settings), settings

    async def preview(self, element_id: UUID) -> PreviewResponse:
        """Next value the element would print, with its HTML rendering. Never assigns."""
        value = await self.selector.preview(await self.display_settings(element_id))
        sink = io.StringIO()
        self.html_renderer.render(value, sink)
        return PreviewResponse(value=value, html=sink.getvalue())
