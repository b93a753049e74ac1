"""Core Layer: pure values and functions, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - translate() and the value types are deterministic

Design Decisions:
    - Functional core separated from imperative shell (dispatcher, providers, routes)
"""
