"""User Handlers: example use cases wired into the registry by bootstrap.py.

Invariants:
    - Handlers are stateless: everything request-specific arrives via (request, context)
    - Commands record domain events; queries never do
    - Input problems are VALIDATION, missing users NOT_FOUND, stale versions and
      duplicate emails CONFLICT

Design Decisions:
    - One class per request type, one handle() method each
    - Validation returns Failure values; lookups raise ResourceNotFoundError to show
      both styles the dispatcher accepts
"""

from typing import Any
from uuid import UUID, uuid4

from usecase_core.core.errors import ResourceNotFoundError
from usecase_core.core.events import DomainEvent
from usecase_core.core.failures import Failure
from usecase_core.core.repository_protocols import ContextLike
from usecase_core.core.requests import Request

MAX_NAME_LENGTH = 200
MAX_PAGE_SIZE = 100


def _clean_name(payload: Any) -> str | Failure:
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        return Failure.validation("name required")
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        return Failure.validation(f"name must be at most {MAX_NAME_LENGTH} characters")
    return name


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_user_id(payload: Any) -> UUID | Failure:
    raw = payload.get("user_id")
    try:
        return UUID(str(raw))
    except (TypeError, ValueError):
        return Failure.validation("user_id must be a UUID")


class CreateUserHandler:
    """Command: create a user, record UserCreated."""

    async def handle(self, request: Request, context: ContextLike) -> Any:
        name = _clean_name(request.payload)
        if isinstance(name, Failure):
            return name
        email = request.payload.get("email")
        if not isinstance(email, str) or "@" not in email:
            return Failure.validation("a valid email is required")
        email = email.strip().lower()

        users = context.repositories.users
        if await users.get_by_email(email) is not None:
            return Failure.conflict(
                f"A user with email '{email}' already exists", email=email,
            )
        user = await users.add(uuid4(), name, email)
        context.record_event(DomainEvent.of(
            "UserCreated", user_id=user["id"], name=name, email=email,
        ))
        return user


class RenameUserHandler:
    """Command: rename a user, optionally guarded by expected_version."""

    async def handle(self, request: Request, context: ContextLike) -> Any:
        user_id = _parse_user_id(request.payload)
        if isinstance(user_id, Failure):
            return user_id
        name = _clean_name(request.payload)
        if isinstance(name, Failure):
            return name
        expected = request.payload.get("expected_version")
        if expected is not None and not _is_int(expected):
            return Failure.validation("expected_version must be an integer")

        users = context.repositories.users
        current = await users.get(user_id)
        if current is None:
            raise ResourceNotFoundError("User", str(user_id))
        if expected is not None and expected != current["version"]:
            return Failure.conflict(
                "User was modified by another request",
                expected_version=expected, current_version=current["version"],
            )
        if current["name"] == name:
            return current

        renamed = await users.rename(user_id, name)
        context.record_event(DomainEvent.of(
            "UserRenamed", user_id=str(user_id), old_name=current["name"], new_name=name,
        ))
        return renamed


class GetUserHandler:
    """Query: fetch one user by id."""

    async def handle(self, request: Request, context: ContextLike) -> Any:
        user_id = _parse_user_id(request.payload)
        if isinstance(user_id, Failure):
            return user_id
        user = await context.repositories.users.get(user_id)
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user


class ListUsersHandler:
    """Query: page through users, newest first."""

    async def handle(self, request: Request, context: ContextLike) -> Any:
        limit = request.payload.get("limit", 10)
        offset = request.payload.get("offset", 0)
        if not _is_int(limit) or not 1 <= limit <= MAX_PAGE_SIZE:
            return Failure.validation(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if not _is_int(offset) or offset < 0:
            return Failure.validation("offset must be >= 0")
        users = await context.repositories.users.list(limit, offset)
        return {"users": users, "limit": limit, "offset": offset}
