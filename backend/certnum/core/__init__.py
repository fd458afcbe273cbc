"""Core Layer — pure numbering logic, domain types, errors and boundary protocols.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic (protocols only describe IO)

Design Decisions:
    - Functional core separated from imperative shell: the allocator service
      orchestrates store IO around the pure functions in sequence_numbers.py
"""
