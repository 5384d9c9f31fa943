"""Infrastructure Layer — transport adapters and cross-cutting concerns.

Invariants:
    - Infrastructure implements core protocols; core never imports from here

Design Decisions:
    - One adapter per transport concern (logging, WebSocket channel)
"""
