"""Infrastructure Layer — database access, locking and logging.

Invariants:
    - Infrastructure depends on core/ only for domain types, errors and protocols
    - All driver errors mapped to the core error hierarchy before leaving this layer

Design Decisions:
    - SQL store implements core.repository_protocols.RecordStore structurally
"""
