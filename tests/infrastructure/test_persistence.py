"""SQLAlchemy Persistence Provider: tests against SQLite and mocked sessions.

Tests cover:
    - A committed scope is visible to the next scope
    - Version increments on rename (version_id_col)
    - Duplicate email at commit reports CONFLICT
    - StaleDataError / IntegrityError from the session map to CONFLICT
    - Other SQLAlchemy errors on begin/commit/rollback become DatabaseError
    - Scope repositories satisfy the UserRepository protocol
    - release() closes the session
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from usecase_core.core.domain_types import CommitStatus, FailureKind
from usecase_core.core.errors import DatabaseError
from usecase_core.core.repository_protocols import UserRepository
from usecase_core.infrastructure.persistence import (
    SqlAlchemyPersistenceProvider, SqlScope,
)
from usecase_core.infrastructure.user_repository import SqlUserRepository


async def _in_scope(provider, work):
    scope = await provider.begin_scope()
    try:
        value = await work(provider.repositories(scope).users)
        status = await provider.commit(scope)
    finally:
        await provider.release(scope)
    return value, status


async def test_commit_is_visible_to_next_scope(sql_provider):
    user_id = uuid4()
    created, status = await _in_scope(
        sql_provider, lambda users: users.add(user_id, "Ada", "ada@example.com"),
    )
    assert status is CommitStatus.OK
    assert created["version"] == 1

    loaded, _ = await _in_scope(sql_provider, lambda users: users.get(user_id))
    assert loaded == created

    by_email, _ = await _in_scope(
        sql_provider, lambda users: users.get_by_email("ada@example.com"),
    )
    assert by_email["id"] == str(user_id)


async def test_rename_bumps_version(sql_provider):
    user_id = uuid4()
    await _in_scope(sql_provider, lambda users: users.add(user_id, "Ada", "ada@example.com"))

    renamed, status = await _in_scope(sql_provider, lambda users: users.rename(user_id, "Grace"))
    assert status is CommitStatus.OK
    assert renamed["version"] == 2

    loaded, _ = await _in_scope(sql_provider, lambda users: users.get(user_id))
    assert loaded["name"] == "Grace"
    assert loaded["version"] == 2


async def test_rename_missing_user_returns_none(sql_provider):
    renamed, _ = await _in_scope(sql_provider, lambda users: users.rename(uuid4(), "Grace"))
    assert renamed is None


async def test_rollback_discards_changes(sql_provider):
    user_id = uuid4()
    scope = await sql_provider.begin_scope()
    await sql_provider.repositories(scope).users.add(user_id, "Ada", "ada@example.com")
    await sql_provider.rollback(scope)
    await sql_provider.release(scope)

    loaded, _ = await _in_scope(sql_provider, lambda users: users.get(user_id))
    assert loaded is None


async def test_duplicate_email_is_conflict(sql_provider):
    await _in_scope(sql_provider, lambda users: users.add(uuid4(), "Ada", "ada@example.com"))
    _, status = await _in_scope(
        sql_provider, lambda users: users.add(uuid4(), "Other", "ada@example.com"),
    )
    assert status is CommitStatus.CONFLICT


async def test_list_is_newest_first(sql_provider):
    await _in_scope(sql_provider, lambda users: users.add(uuid4(), "Ada", "ada@example.com"))
    await _in_scope(sql_provider, lambda users: users.add(uuid4(), "Grace", "grace@example.com"))

    page, _ = await _in_scope(sql_provider, lambda users: users.list(10, 0))
    assert [u["name"] for u in page] == ["Grace", "Ada"]

    second, _ = await _in_scope(sql_provider, lambda users: users.list(1, 1))
    assert [u["name"] for u in second] == ["Ada"]


def _mock_scope(commit_error: Exception) -> SqlScope:
    session = MagicMock()
    session.commit = AsyncMock(side_effect=commit_error)
    session.close = AsyncMock()
    return SqlScope(session)


@pytest.mark.parametrize("error", [
    StaleDataError("UPDATE statement on table 'users' expected to update 1 row(s)"),
    IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed")),
])
async def test_store_conflicts_map_to_conflict(sql_provider, error):
    assert await sql_provider.commit(_mock_scope(error)) is CommitStatus.CONFLICT


async def test_commit_fault_becomes_database_error(sql_provider):
    error = OperationalError("COMMIT", {}, Exception("disk I/O error"))
    with pytest.raises(DatabaseError) as exc_info:
        await sql_provider.commit(_mock_scope(error))
    assert exc_info.value.operation == "commit"
    assert exc_info.value.kind is FailureKind.UNEXPECTED
    assert exc_info.value.__cause__ is error


async def test_generic_sqlalchemy_error_is_mapped(sql_provider):
    with pytest.raises(DatabaseError, match="Database operation failed"):
        await sql_provider.commit(_mock_scope(SQLAlchemyError("boom")))


async def test_non_database_errors_pass_through(sql_provider):
    with pytest.raises(RuntimeError):
        await sql_provider.commit(_mock_scope(RuntimeError("bug")))


async def test_begin_fault_closes_session_and_maps():
    session = MagicMock()
    session.begin = AsyncMock(
        side_effect=OperationalError("BEGIN", {}, Exception("connection refused")),
    )
    session.close = AsyncMock()
    provider = SqlAlchemyPersistenceProvider(MagicMock(return_value=session))

    with pytest.raises(DatabaseError) as exc_info:
        await provider.begin_scope()

    assert exc_info.value.operation == "begin"
    assert exc_info.value.to_failure().message == "An unexpected error occurred"
    session.close.assert_awaited_once()


async def test_rollback_fault_is_mapped(sql_provider):
    scope = _mock_scope(RuntimeError())
    scope.session.rollback = AsyncMock(
        side_effect=OperationalError("ROLLBACK", {}, Exception("gone")),
    )
    with pytest.raises(DatabaseError) as exc_info:
        await sql_provider.rollback(scope)
    assert exc_info.value.operation == "rollback"


async def test_release_closes_session(sql_provider):
    scope = _mock_scope(RuntimeError())
    await sql_provider.release(scope)
    scope.session.close.assert_awaited_once()


async def test_scope_repositories_satisfy_protocol(sql_provider):
    scope = await sql_provider.begin_scope()
    try:
        users = sql_provider.repositories(scope).users
        assert isinstance(users, SqlUserRepository)
        assert isinstance(users, UserRepository)
    finally:
        await sql_provider.release(scope)
