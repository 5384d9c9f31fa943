"""API Layer — FastAPI routes, WebSocket endpoints, and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All HTTP endpoints return structured JSON responses

Design Decisions:
    - Thin routes delegate to services (functional core, imperative shell)
"""
