"""Pydantic Schemas — request and socket-frame validation at the system boundary.

Invariants:
    - Schemas validate at system boundary (HTTP bodies, inbound socket frames)
    - Business limits (amount ranges) stay in core/, not here

Design Decisions:
    - Separate from core entities: schemas are wire contracts, entities are state
"""
