"""Access control gate.

Protected course content (videos, PDF) is visible if and only if the user
is in the course's enrolled set. There is no role bypass: teachers and
admins see protected content only by being enrolled.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from coursegate.core.exceptions import AuthorizationError, NotFoundError
from coursegate.core.logging import get_logger
from coursegate.core.redis import access_cache_key
from coursegate.courses.models import Course, Video


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from coursegate.store import EnrollmentStore


logger = get_logger(__name__)


@dataclass(frozen=True)
class CourseView:
    """What a given caller is allowed to see of a course."""

    course_id: UUID
    title: str
    description: str
    price: Decimal
    is_free: bool
    is_enrolled: bool
    videos: tuple[Video, ...] = ()
    pdf_url: str | None = None


class AccessGate:
    """Membership checks and content filtering."""

    def __init__(
        self,
        store: "EnrollmentStore",
        redis: "Redis | None" = None,
        cache_ttl_seconds: int = 300,
    ):
        self.store = store
        self.redis = redis
        self.cache_ttl_seconds = cache_ttl_seconds

    async def is_enrolled(self, course_id: UUID, user_id: UUID) -> bool:
        """Check enrolled-set membership.

        Enrollment is terminal, so only positive answers are cached; a
        negative answer could turn positive at any moment.
        """
        cache_key = access_cache_key(course_id, user_id)
        if self.redis:
            if await self.redis.get(cache_key) == "1":
                return True

        enrolled = await self.store.is_member(course_id, user_id)

        if enrolled and self.redis:
            await self.redis.setex(cache_key, self.cache_ttl_seconds, "1")

        return enrolled

    async def _get_course(self, course_id: UUID) -> Course:
        course = await self.store.find_course(course_id)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    async def resolve_visible_content(
        self, course_id: UUID, user_id: UUID | None
    ) -> CourseView:
        """Course detail filtered for the caller (anonymous when user_id is None).

        Raises:
            NotFoundError: If the course doesn't exist
        """
        course = await self._get_course(course_id)
        enrolled = user_id is not None and await self.is_enrolled(course_id, user_id)

        return CourseView(
            course_id=course.id,
            title=course.title,
            description=course.description,
            price=course.price,
            is_free=not course.requires_payment,
            is_enrolled=enrolled,
            videos=course.videos if enrolled else (),
            pdf_url=course.pdf_url if enrolled else None,
        )

    async def require_enrollment(self, course_id: UUID, user_id: UUID) -> Course:
        """Return the course if the user may see its protected content.

        Raises:
            NotFoundError: If the course doesn't exist
            AuthorizationError: If the user is not enrolled
        """
        course = await self._get_course(course_id)
        if not await self.is_enrolled(course_id, user_id):
            logger.info(
                "protected_content_denied",
                course_id=str(course_id),
                user_id=str(user_id),
            )
            raise AuthorizationError("Enroll in this course to access its content")
        return course
