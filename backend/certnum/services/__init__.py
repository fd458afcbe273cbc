"""Services Layer — allocator, display selection, issue and element lifecycles.

Invariants:
    - Services orchestrate IO around the pure functions in core/
    - Only SequenceAllocator writes certificate numbers

Design Decisions:
    - One service per concern, wired once at startup (services/registry.py)
"""
