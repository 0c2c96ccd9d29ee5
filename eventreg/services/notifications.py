"""
Email job dispatcher.

Confirmation emails are published as eventreg.tasks.send_email Celery tasks
on the Redis broker, and the worker does the delivery. Publishing is
fire-and-forget: when the queue is disabled or the broker is down the job
is dropped and logged, and the caller carries on. A registration is never
rolled back because its email could not be queued.
"""

import asyncio
from typing import TypedDict

from eventreg.core.config import get_settings
from eventreg.core.logging import get_logger
from eventreg.core.metrics import record_email_job
from eventreg.tasks import send_email

logger = get_logger(__name__)
settings = get_settings()


class EmailJob(TypedDict):
    to: str
    subject: str
    html: str


async def add_email_job(job: EmailJob) -> bool:
    """Queue an email job. Returns True if it reached the broker."""
    if not settings.REDIS_ENABLED:
        record_email_job("skipped")
        logger.warning("email_job_skipped", to=job["to"], reason="queue_disabled")
        return False

    try:
        # publishing blocks on the broker connection
        result = await asyncio.to_thread(send_email.delay, job["to"], job["subject"], job["html"])
    except Exception as e:
        record_email_job("failed")
        logger.error("email_job_enqueue_failed", to=job["to"], error=str(e))
        return False

    record_email_job("queued")
    logger.info("email_job_queued", to=job["to"], task_id=result.id, queue=settings.EMAIL_QUEUE_NAME)
    return True
