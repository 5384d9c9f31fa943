"""Services Layer — notification routing, chat/ledger orchestration, liveness.

Invariants:
    - Services compose core stores; they hold no domain state of their own
    - Event dispatch uses explicit dict mapping (no auto-discovery)

Design Decisions:
    - hub.py is the single composition root
"""
