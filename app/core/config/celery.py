from celery import Celery
from app.core.config import settings

celery_app = Celery(
    'auction_tasks',
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend
)

celery_app.conf.update(
    result_backend=settings.celery_result_backend,
    task_serializer='json',
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    accept_content=['json'],
    result_extended=True,
    result_expires=3600,
    beat_schedule={
        'settle-expired-auctions': {
            'task': 'app.tasks.auction.settle_expired_auctions',
            'schedule': float(settings.settlement_interval_seconds),
        },
    },
)

celery_app.autodiscover_tasks(["app.tasks"], related_name="auction")
