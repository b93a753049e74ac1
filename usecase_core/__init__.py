"""Use-Case Core: request dispatch, transactional scopes, and domain events.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
