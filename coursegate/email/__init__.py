"""Transactional email."""

from .service import EmailService, Mailer, NullMailer, send_enrollment_confirmation


__all__ = ["EmailService", "Mailer", "NullMailer", "send_enrollment_confirmation"]
