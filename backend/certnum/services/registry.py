"""Service Registry — builds the service graph once per process.

Invariants:
    - One SequenceAllocator (and so one SequenceLocks registry) per process
    - Every service shares the same DatabaseSessionManager

Design Decisions:
    - Module-level singleton initialized in the FastAPI lifespan, mirroring
      infrastructure.database.db_manager
"""

from dataclasses import dataclass

from certnum.config import Settings
from certnum.infrastructure.database import DatabaseSessionManager
from certnum.infrastructure.record_store import SqlRecordStoreProvider
from certnum.infrastructure.sequence_lock import SequenceLocks
from certnum.services.display_selector import DisplaySelector
from certnum.services.element_service import ElementService
from certnum.services.issue_service import IssueService
from certnum.services.sequence_allocator import SequenceAllocator


@dataclass
class Services:
    allocator: SequenceAllocator
    issues: IssueService
    selector: DisplaySelector
    elements: ElementService


def build_services(manager: DatabaseSessionManager, settings: Settings) -> Services:
    allocator = SequenceAllocator(
        SqlRecordStoreProvider(
            manager, settings.sequence_key,
            settings.sequence_lock_timeout_seconds,
        ),
        SequenceLocks(settings.sequence_lock_timeout_seconds),
    )
    issues = IssueService(manager, allocator, settings.assign_on_issue)
    selector = DisplaySelector(allocator)
    elements = ElementService(
        manager, selector, issues, settings.default_element_width,
    )
    return Services(
        allocator=allocator, issues=issues, selector=selector, elements=elements,
    )


# Singleton (initialized on startup)
services: Services | None = None


def init_services(manager: DatabaseSessionManager, settings: Settings) -> Services:
    global services
    services = build_services(manager, settings)
    return services


def get_services() -> Services:
    """FastAPI dependency for the wired services."""
    if not services:
        raise RuntimeError("Services not initialized")
    return services
