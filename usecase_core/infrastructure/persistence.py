"""SQLAlchemy Persistence Provider: PersistenceProvider backed by one AsyncSession per scope.

Invariants:
    - begin_scope() opens a fresh session and an explicit transaction
    - commit() maps store-detected concurrency problems to CommitStatus.CONFLICT:
      StaleDataError (version_id_col mismatch) and IntegrityError (unique race)
    - Every other SQLAlchemy error from begin/commit/rollback surfaces as
      DatabaseError (UNEXPECTED), tagged with the failing operation
    - release() always closes the session, which rolls back anything still open
    - Repositories are bound to the scope's session; they never commit

Design Decisions:
    - Provider holds only the session factory; all per-request state lives in SqlScope
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from usecase_core.core.domain_types import CommitStatus
from usecase_core.core.errors import DatabaseError
from usecase_core.core.repository_protocols import UserRepository
from usecase_core.infrastructure.user_repository import SqlUserRepository

logger = logging.getLogger(__name__)


def _database_error(e: SQLAlchemyError, operation: str) -> DatabaseError:
    if isinstance(e, OperationalError):
        logger.error(f"DB operational error on {operation}: {e}")
        return DatabaseError("Connection or operational error", operation)
    if isinstance(e, DBAPIError):
        logger.error(f"DB driver error on {operation}: {e}")
        return DatabaseError("Database driver error", operation)
    logger.error(f"SQLAlchemy error on {operation}: {e}")
    return DatabaseError("Database operation failed", operation)


@dataclass
class SqlRepositories:
    """Repository set exposed to handlers as context.repositories."""
    users: UserRepository


@dataclass
class SqlScope:
    """Scope handle: one session, one transaction, its repositories."""
    session: AsyncSession
    repositories: SqlRepositories = field(init=False)

    def __post_init__(self) -> None:
        self.repositories = SqlRepositories(users=SqlUserRepository(self.session))


class SqlAlchemyPersistenceProvider:
    """Implements core PersistenceProvider over an async_sessionmaker."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def begin_scope(self) -> SqlScope:
        session = self._session_factory()
        try:
            await session.begin()
        except SQLAlchemyError as e:
            await session.close()
            raise _database_error(e, "begin") from e
        except BaseException:
            await session.close()
            raise
        return SqlScope(session)

    async def commit(self, handle: SqlScope) -> CommitStatus:
        try:
            await handle.session.commit()
        except StaleDataError as e:
            logger.info(f"Stale data on commit: {e}")
            return CommitStatus.CONFLICT
        except IntegrityError as e:
            logger.info(f"Integrity conflict on commit: {e.orig}")
            return CommitStatus.CONFLICT
        except SQLAlchemyError as e:
            raise _database_error(e, "commit") from e
        return CommitStatus.OK

    async def rollback(self, handle: SqlScope) -> None:
        try:
            await handle.session.rollback()
        except SQLAlchemyError as e:
            raise _database_error(e, "rollback") from e

    async def release(self, handle: SqlScope) -> None:
        await handle.session.close()

    def repositories(self, handle: SqlScope) -> SqlRepositories:
        return handle.repositories
