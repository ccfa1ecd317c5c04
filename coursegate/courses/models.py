"""Course entity and Cassandra schema.

Only the fields the enrollment engine reads are modelled here. Course
editing (titles, schedules, uploads, approval) is owned by the content
service that writes these rows.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID, uuid4

from coursegate.core.exceptions import ValidationError


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    price DECIMAL,
    is_free BOOLEAN,
    teacher_ids SET<UUID>,
    videos LIST<FROZEN<TUPLE<TEXT, TEXT>>>,
    pdf_url TEXT
)
"""

COURSES_TABLES_CQL = [COURSE_TABLE_CQL]


# ==============================================================================
# Entity
# ==============================================================================

MINOR_UNITS = Decimal(100)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit price (49.99) to minor units (4999)."""
    return int((amount * MINOR_UNITS).quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class Video:
    """A protected video reference."""

    url: str
    title: str = ""


@dataclass(frozen=True)
class Course:
    """Course as seen by the enrollment engine.

    Attributes:
        id: Course identifier
        title: Public title
        description: Public description
        price: Non-negative price in major currency units
        is_free: Free courses enroll without payment
        teacher_ids: Teachers assigned to the course
        videos: Protected videos, in display order
        pdf_url: Protected course PDF
    """

    id: UUID = field(default_factory=uuid4)
    title: str = ""
    description: str = ""
    price: Decimal = Decimal(0)
    is_free: bool = True
    teacher_ids: frozenset[UUID] = frozenset()
    videos: tuple[Video, ...] = ()
    pdf_url: str | None = None

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValidationError("Course price must not be negative")

    @property
    def requires_payment(self) -> bool:
        """Whether enrollment goes through checkout."""
        return not self.is_free and self.price > 0

    @property
    def amount_minor(self) -> int:
        """Server-side charge amount in minor units."""
        return to_minor_units(self.price)

    def has_teacher(self, user_id: UUID) -> bool:
        """Check if the user is assigned to teach this course."""
        return user_id in self.teacher_ids

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course from a Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            description=row.description or "",
            price=row.price if row.price is not None else Decimal(0),
            is_free=row.is_free if row.is_free is not None else True,
            teacher_ids=frozenset(row.teacher_ids or ()),
            videos=tuple(Video(url=url, title=title) for url, title in row.videos or ()),
            pdf_url=row.pdf_url,
        )

    def __repr__(self) -> str:
        return f"<Course {self.title} ({'free' if not self.requires_payment else self.price})>"
