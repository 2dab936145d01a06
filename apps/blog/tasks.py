import logging

from celery import shared_task

from .services import likes as like_service
from .services import posts as post_service

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def publish_scheduled_posts(self):
    """Publish drafts whose scheduled time has passed."""
    try:
        return post_service.publish_due_posts()
    except Exception as exc:
        logger.error(f"Error publishing scheduled posts: {exc}", exc_info=True)
        raise self.retry(countdown=60, exc=exc)


@shared_task(bind=True, max_retries=3)
def sync_blog_counters(self):
    """Recompute like and comment counters from the underlying rows."""
    try:
        return like_service.sync_all()
    except Exception as exc:
        logger.error(f"Error syncing blog counters: {exc}", exc_info=True)
        raise self.retry(countdown=300, exc=exc)
