"""RelayPay Application Package — chat relay and ledger over one realtime hub.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
