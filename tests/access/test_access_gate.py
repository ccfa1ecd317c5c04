"""Tests for enrollment-gated content visibility."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from coursegate.access.service import AccessGate
from coursegate.core.exceptions import AuthorizationError, NotFoundError
from coursegate.enrollments.models import EnrollmentSource


@pytest.fixture
def mock_redis():
    """Mock Redis client (decode_responses=True, so values are str)."""
    redis_mock = AsyncMock()
    redis_mock.get = AsyncMock(return_value=None)
    redis_mock.setex = AsyncMock(return_value=True)
    return redis_mock


class TestResolveVisibleContent:
    @pytest.mark.asyncio
    async def test_non_member_sees_public_fields_only(
        self, access_gate, student, paid_course
    ) -> None:
        view = await access_gate.resolve_visible_content(paid_course.id, student.id)

        assert view.title == paid_course.title
        assert view.description == paid_course.description
        assert view.is_enrolled is False
        assert view.videos == ()
        assert view.pdf_url is None

    @pytest.mark.asyncio
    async def test_member_sees_protected_content(
        self, access_gate, store, student, paid_course
    ) -> None:
        await store.insert_if_absent(paid_course.id, student.id, EnrollmentSource.PURCHASE)

        view = await access_gate.resolve_visible_content(paid_course.id, student.id)

        assert view.is_enrolled is True
        assert view.videos == paid_course.videos
        assert view.pdf_url == paid_course.pdf_url

    @pytest.mark.asyncio
    async def test_anonymous_gets_public_view(self, access_gate, free_course) -> None:
        view = await access_gate.resolve_visible_content(free_course.id, None)

        assert view.is_enrolled is False
        assert view.videos == ()
        assert view.is_free is True

    @pytest.mark.asyncio
    async def test_teacher_without_membership_sees_public_view(
        self, access_gate, teacher, paid_course
    ) -> None:
        """No role bypass: assignment as teacher is not enrollment."""
        view = await access_gate.resolve_visible_content(paid_course.id, teacher.id)

        assert view.videos == ()
        assert view.pdf_url is None

    @pytest.mark.asyncio
    async def test_unknown_course(self, access_gate, student) -> None:
        with pytest.raises(NotFoundError):
            await access_gate.resolve_visible_content(uuid4(), student.id)


class TestRequireEnrollment:
    @pytest.mark.asyncio
    async def test_non_member_denied(self, access_gate, student, paid_course) -> None:
        with pytest.raises(AuthorizationError):
            await access_gate.require_enrollment(paid_course.id, student.id)

    @pytest.mark.asyncio
    async def test_member_gets_course(
        self, access_gate, store, student, paid_course
    ) -> None:
        await store.insert_if_absent(paid_course.id, student.id, EnrollmentSource.PURCHASE)

        course = await access_gate.require_enrollment(paid_course.id, student.id)

        assert course.id == paid_course.id


class TestMembershipCache:
    """Only positive membership answers are cached."""

    @pytest.mark.asyncio
    async def test_positive_result_cached(
        self, store, mock_redis, student, free_course
    ) -> None:
        gate = AccessGate(store, redis=mock_redis, cache_ttl_seconds=120)
        await store.insert_if_absent(free_course.id, student.id, EnrollmentSource.FREE)

        assert await gate.is_enrolled(free_course.id, student.id) is True

        mock_redis.setex.assert_awaited_once_with(
            f"enrollment:{free_course.id}:{student.id}", 120, "1"
        )

    @pytest.mark.asyncio
    async def test_negative_result_not_cached(
        self, store, mock_redis, student, free_course
    ) -> None:
        gate = AccessGate(store, redis=mock_redis)

        assert await gate.is_enrolled(free_course.id, student.id) is False

        mock_redis.setex.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_hit_skips_store(self, mock_redis, student, free_course) -> None:
        store = AsyncMock()
        mock_redis.get = AsyncMock(return_value="1")
        gate = AccessGate(store, redis=mock_redis)

        assert await gate.is_enrolled(free_course.id, student.id) is True

        store.is_member.assert_not_awaited()
