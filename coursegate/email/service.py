"""Transactional email via Gmail API with a service account.

Uses domain-wide delegation to send as a Google Workspace user. The service
account needs the https://www.googleapis.com/auth/gmail.send scope granted
in Google Admin Console.

Email is best-effort everywhere in the engine: ``send`` reports failure by
returning False and never raises.
"""

import asyncio
import base64
from email.mime.text import MIMEText
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from coursegate.core.logging import get_logger


if TYPE_CHECKING:
    from googleapiclient._apis.gmail.v1 import GmailResource

    from coursegate.auth.models import User
    from coursegate.courses.models import Course


logger = get_logger(__name__)

GMAIL_SCOPES = ["https://www.googleapis.com/auth/gmail.send"]


class Mailer(Protocol):
    async def send(self, to_address: str, subject: str, body: str) -> bool: ...


class NullMailer:
    """Mailer used when email is disabled; records what would be sent."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, to_address: str, subject: str, body: str) -> bool:
        self.sent.append((to_address, subject, body))
        logger.info("email_skipped", to=to_address, subject=subject[:50])
        return True


class EmailService:
    """Gmail API mailer."""

    def __init__(
        self,
        credentials_path: str,
        sender_address: str,
        sender_name: str = "CourseGate",
    ):
        self.credentials_path = credentials_path
        self.sender_address = sender_address
        self.sender_name = sender_name
        self._service: GmailResource | None = None

        if not Path(credentials_path).exists():
            logger.warning(
                "email_credentials_not_found",
                path=credentials_path,
                message="Gmail API will not be available",
            )

    def _get_service(self) -> "GmailResource":
        """Lazily build the Gmail client with delegated credentials.

        Raises:
            FileNotFoundError: If credentials file doesn't exist
        """
        if self._service is not None:
            return self._service

        credentials_file = Path(self.credentials_path)
        if not credentials_file.exists():
            msg = f"Credentials file not found: {self.credentials_path}"
            raise FileNotFoundError(msg)

        credentials = service_account.Credentials.from_service_account_file(
            str(credentials_file),
            scopes=GMAIL_SCOPES,
        )
        self._service = build(
            "gmail",
            "v1",
            credentials=credentials.with_subject(self.sender_address),
            cache_discovery=False,
        )
        logger.info("gmail_service_initialized", sender=self.sender_address)
        return self._service

    def _create_message(self, to_address: str, subject: str, body: str) -> dict:
        """Build a Gmail API payload (base64url encoded RFC 2822 message)."""
        message = MIMEText(body, "plain", "utf-8")
        message["From"] = f"{self.sender_name} <{self.sender_address}>"
        message["To"] = to_address
        message["Subject"] = subject
        return {"raw": base64.urlsafe_b64encode(message.as_bytes()).decode("utf-8")}

    def _send_sync(self, payload: dict) -> dict:
        service = self._get_service()
        return service.users().messages().send(userId="me", body=payload).execute()

    async def send(self, to_address: str, subject: str, body: str) -> bool:
        payload = self._create_message(to_address, subject, body)
        try:
            result = await asyncio.to_thread(self._send_sync, payload)
        except HttpError as e:
            logger.exception("email_send_failed", error=str(e), to=to_address)
            return False
        except FileNotFoundError as e:
            logger.error("email_credentials_missing", error=str(e))
            return False
        except Exception as e:
            logger.exception("email_send_unexpected_error", error=str(e))
            return False

        logger.info(
            "email_sent",
            message_id=result.get("id"),
            to=to_address,
            subject=subject[:50],
        )
        return True


# ==============================================================================
# Messages
# ==============================================================================


async def send_enrollment_confirmation(
    mailer: Mailer, user: "User", course: "Course"
) -> bool:
    """Tell a user they now have access to a course."""
    greeting = f"Hi {user.first_name}," if user.first_name else "Hi,"
    body = (
        f"{greeting}\n\n"
        f"You are now enrolled in {course.title}. "
        "Your videos and course material are available from your dashboard.\n"
    )
    try:
        return await mailer.send(user.email, f"Enrolled: {course.title}", body)
    except Exception as e:
        logger.warning(
            "enrollment_email_failed",
            user_id=str(user.id),
            course_id=str(course.id),
            error=str(e),
        )
        return False
