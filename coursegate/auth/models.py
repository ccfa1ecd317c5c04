"""User records and the explicit actor passed into every service call.

The users table is owned by the identity service; this engine only reads it.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from coursegate.auth.permissions import UserRole


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    email TEXT,
    first_name TEXT,
    role TEXT
)
"""

AUTH_TABLES_CQL = [USER_TABLE_CQL]


@dataclass(frozen=True)
class User:
    """Read-only view of a platform user."""

    id: UUID
    email: str
    first_name: str = ""
    role: UserRole = UserRole.USER

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User from a Cassandra row."""
        return cls(
            id=row.id,
            email=row.email,
            first_name=row.first_name or "",
            role=UserRole(row.role) if row.role else UserRole.USER,
        )


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an operation.

    Resolved once by the HTTP layer and passed explicitly; services never
    look up a "current user" on their own.
    """

    actor_id: UUID
    role: UserRole
    email: str | None = None
