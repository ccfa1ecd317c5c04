"""Shared fixtures: in-memory store, seeded users/courses, mocked gateway."""

import os
import tempfile
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest


# Settings are cached on first use, so the environment must be set before
# anything imports coursegate.main.
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "json")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="coursegate-logs-"))

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from coursegate.access.service import AccessGate  # noqa: E402
from coursegate.auth.models import Actor, User  # noqa: E402
from coursegate.auth.permissions import UserRole  # noqa: E402
from coursegate.config import get_settings  # noqa: E402
from coursegate.courses.models import Course, Video  # noqa: E402
from coursegate.email import NullMailer  # noqa: E402
from coursegate.enrollments.service import EnrollmentService  # noqa: E402
from coursegate.messaging.service import MessagingService  # noqa: E402
from coursegate.payments.gateway import GatewayIntent  # noqa: E402
from coursegate.payments.models import PaymentStatus  # noqa: E402
from coursegate.payments.service import PaymentService  # noqa: E402
from coursegate.store import InMemoryEnrollmentStore  # noqa: E402


# ==============================================================================
# Identities
# ==============================================================================


@pytest.fixture
def student() -> User:
    return User(id=uuid4(), email="student@example.com", first_name="Ana", role=UserRole.STUDENT)


@pytest.fixture
def other_student() -> User:
    return User(id=uuid4(), email="other@example.com", first_name="Ben", role=UserRole.STUDENT)


@pytest.fixture
def teacher() -> User:
    return User(id=uuid4(), email="teacher@example.com", first_name="Tess", role=UserRole.TEACHER)


@pytest.fixture
def actor_for():
    """Build the explicit actor for a user."""

    def _actor(user: User) -> Actor:
        return Actor(actor_id=user.id, role=user.role, email=user.email)

    return _actor


# ==============================================================================
# Store
# ==============================================================================


@pytest.fixture
def free_course(teacher: User) -> Course:
    return Course(
        title="Intro to Pharmacology",
        description="Free starter course",
        price=Decimal(0),
        is_free=True,
        teacher_ids=frozenset({teacher.id}),
        videos=(Video(url="https://cdn.example.com/v/intro.mp4", title="Welcome"),),
        pdf_url="https://cdn.example.com/p/intro.pdf",
    )


@pytest.fixture
def paid_course(teacher: User) -> Course:
    return Course(
        title="Clinical Dosage",
        description="Paid course",
        price=Decimal("49.99"),
        is_free=False,
        teacher_ids=frozenset({teacher.id}),
        videos=(
            Video(url="https://cdn.example.com/v/dosage-1.mp4", title="Part 1"),
            Video(url="https://cdn.example.com/v/dosage-2.mp4", title="Part 2"),
        ),
        pdf_url="https://cdn.example.com/p/dosage.pdf",
    )


@pytest.fixture
def store(student, other_student, teacher, free_course, paid_course) -> InMemoryEnrollmentStore:
    """In-memory store seeded with three users and two courses."""
    memory = InMemoryEnrollmentStore()
    for user in (student, other_student, teacher):
        memory.save_user(user)
    memory.save_course(free_course)
    memory.save_course(paid_course)
    return memory


# ==============================================================================
# Gateway / Mailer
# ==============================================================================


def _make_intent(
    course_id: UUID,
    user_id: UUID,
    status: PaymentStatus = PaymentStatus.PENDING,
    amount: int = 4999,
    intent_id: str = "pi_test_1",
    currency: str = "cad",
) -> GatewayIntent:
    return GatewayIntent(
        id=intent_id,
        status=status,
        amount=amount,
        currency=currency,
        metadata={"course_id": str(course_id), "user_id": str(user_id)},
        client_secret=f"{intent_id}_secret_abc",
        raw_status=status.value,
    )


@pytest.fixture
def gateway(student, paid_course) -> Mock:
    """Gateway double; create_intent returns a pending intent for student/paid_course."""
    mock = Mock()
    mock.create_intent = AsyncMock(
        return_value=_make_intent(paid_course.id, student.id)
    )
    mock.get_intent = AsyncMock(
        return_value=_make_intent(paid_course.id, student.id)
    )
    mock.parse_webhook = Mock()
    return mock


@pytest.fixture
def make_intent():
    """Factory for gateway intents addressed to a (course, user) pair."""
    return _make_intent


@pytest.fixture
def mailer() -> NullMailer:
    return NullMailer()


# ==============================================================================
# Services
# ==============================================================================


@pytest.fixture
def access_gate(store) -> AccessGate:
    return AccessGate(store)


@pytest.fixture
def enrollment_service(store, mailer) -> EnrollmentService:
    return EnrollmentService(store, mailer=mailer, currency="cad")


@pytest.fixture
def payment_service(store, gateway, mailer) -> PaymentService:
    return PaymentService(store, gateway, mailer=mailer, currency="cad")


@pytest.fixture
def messaging_service(store, access_gate) -> MessagingService:
    return MessagingService(store, access_gate)


# ==============================================================================
# HTTP
# ==============================================================================


def _make_token(user: User, token_type: str = "access") -> str:
    settings = get_settings()
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "type": token_type,
        "exp": datetime.now(UTC) + timedelta(minutes=15),
    }
    return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)


@pytest.fixture
def make_token():
    return _make_token


@pytest.fixture
def auth_headers():
    """Factory for Authorization headers carrying a valid access token."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {_make_token(user)}"}

    return _headers


@pytest.fixture
def app(store, gateway, mailer):
    """Application wired to the in-memory store (lifespan is not run)."""
    from coursegate.main import create_app, wire_services  # noqa: PLC0415

    application = create_app()
    wire_services(application, store, get_settings(), gateway=gateway, mailer=mailer)
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
