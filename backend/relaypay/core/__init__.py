"""Core Layer — domain state and rules, no IO, no async.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or schemas/
    - Every mutable aggregate sits behind its own lock
    - Outbound IO only through the Channel protocol, which never blocks

Design Decisions:
    - Functional core separated from imperative shell
"""
