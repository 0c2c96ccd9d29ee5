from celery import Celery

from eventreg.core.config import get_settings

settings = get_settings()


def make_celery(app_name: str = "eventreg") -> Celery:
    celery = Celery(app_name, broker=settings.REDIS_URL, backend=settings.REDIS_URL)
    celery.conf.task_serializer = "json"
    celery.conf.result_serializer = "json"
    celery.conf.accept_content = ["json"]
    celery.conf.result_persistent = False
    celery.conf.task_ignore_result = True
    celery.conf.task_routes = {"eventreg.tasks.send_email": {"queue": settings.EMAIL_QUEUE_NAME}}
    # a registration must not hang on an unreachable broker
    celery.conf.broker_connection_timeout = settings.BROKER_CONNECT_TIMEOUT
    celery.conf.broker_transport_options = {"max_retries": 0}
    celery.conf.task_publish_retry = False
    return celery


celery_app = make_celery()
