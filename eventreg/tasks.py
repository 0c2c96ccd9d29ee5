"""
Celery tasks, run by the worker:

    celery -A eventreg.tasks worker -Q emails
"""

import smtplib
from email.message import EmailMessage

from eventreg.core.celery_config import celery_app
from eventreg.core.config import get_settings
from eventreg.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def build_message(to: str, subject: str, html: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.EMAIL_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content("This message is best viewed in an HTML capable mail client.")
    message.add_alternative(html, subtype="html")
    return message


@celery_app.task(bind=True, max_retries=3, default_retry_delay=30)
def send_email(self, to: str, subject: str, html: str):
    """Deliver one confirmation email over SMTP, retrying on transport errors."""
    message = build_message(to, subject, html)
    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
            if settings.SMTP_USE_TLS:
                smtp.starttls()
            if settings.SMTP_USERNAME:
                smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("email_delivery_failed", to=to, error=str(e), attempt=self.request.retries)
        raise self.retry(exc=e)

    logger.info("email_sent", to=to, subject=subject)
