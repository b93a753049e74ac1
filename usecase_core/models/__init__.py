"""ORM Models: SQLAlchemy declarative models behind the persistence provider.

Invariants:
    - All models inherit from Base (db/base.py)
    - Models never leave infrastructure/: repositories hand plain dicts to handlers

Design Decisions:
    - One file per table
    - All models imported here so Base.metadata is complete before create_all()
"""

from usecase_core.models.user import User  # noqa: F401
from usecase_core.models.event_delivery_failure import EventDeliveryFailure  # noqa: F401
