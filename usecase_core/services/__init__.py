"""Services Layer: the orchestration shell around the pure core.

Invariants:
    - Dispatcher is the only caller of UnitOfWork.begin/commit/rollback
    - Handlers (handle_*.py) never manage transactions directly
"""
