"""Transactional email through the Brevo HTTP API."""

import logging

import httpx

from config import settings

logger = logging.getLogger(__name__)


class EmailError(Exception):
    pass


def send_email(recipients: list[str], subject: str, html: str) -> None:
    """Send one message addressed to every recipient. Raises EmailError on failure."""
    if not settings.BREVO_API_KEY:
        raise EmailError("BREVO_API_KEY is not configured")
    if not recipients:
        raise EmailError("No recipients")

    payload = {
        "sender": {"email": settings.EMAIL_SENDER, "name": settings.EMAIL_SENDER_NAME},
        "to": [{"email": email} for email in recipients],
        "subject": subject,
        "htmlContent": html,
    }
    headers = {
        "api-key": settings.BREVO_API_KEY,
        "accept": "application/json",
        "content-type": "application/json",
    }
    try:
        resp = httpx.post(settings.BREVO_API_URL, json=payload, headers=headers, timeout=10)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Email send failed for %d recipient(s): %s", len(recipients), e)
        raise EmailError(str(e)) from e

    logger.info("Sent '%s' to %d recipient(s)", subject, len(recipients))
