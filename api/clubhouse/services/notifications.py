"""Email notifications via SMTP."""

import logging
from email.message import EmailMessage

import aiosmtplib

from clubhouse.core.config import settings

logger = logging.getLogger(__name__)


async def send_email(to: str, subject: str, body: str) -> None:
    """Send a plain-text email via SMTP."""
    message = EmailMessage()
    message["From"] = settings.smtp_from
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)

    await aiosmtplib.send(
        message,
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        timeout=settings.smtp_timeout_seconds,
    )


async def send_booking_confirmation(user: dict, booking: dict, court: dict) -> None:
    body = (
        f"Dear {user['first_name']} {user['last_name']},\n\n"
        f"Your booking has been received!\n\n"
        f"Court: {court['name']}\n"
        f"Date: {booking['date']}\n"
        f"Time: {booking['start_time']} - {booking['end_time']}\n"
        f"Amount: ${booking['total_amount']}\n\n"
        f"Thank you for playing at {settings.app_name}!"
    )
    await send_email(user["email"], f"Booking Confirmation - {settings.app_name}", body)
    logger.info("Booking confirmation for %s sent to %s", booking.get("booking_id"), user["email"])


async def send_welcome_email(user: dict) -> None:
    body = (
        f"Hi {user['first_name']},\n\n"
        f"Welcome to {settings.app_name}! Your account is ready and you can start booking courts.\n\n"
        f"{settings.app_name}"
    )
    await send_email(user["email"], f"Welcome to {settings.app_name}", body)
    logger.info("Welcome email sent to %s", user["email"])
