"""API Layer: FastAPI routes, middleware, and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Clients receive either a Result body or an ErrorEnvelope, never a raw fault

Design Decisions:
    - Thin routes build a Request and delegate to Dispatcher.dispatch()
"""
