
from django.core.management.base import BaseCommand

from apps.blog.services import likes as like_service


class Command(BaseCommand):
    """
    Recompute the denormalized like and comment counters on posts and
    comments from the rows they summarize.
    """

    help = "Repair likes_count and comments_count drift"

    def handle(self, *args, **options):
        result = like_service.sync_all()
        self.stdout.write(
            self.style.SUCCESS(
                "Counters synced: "
                f"{result['posts_fixed']} post like counts, "
                f"{result['comments_fixed']} comment like counts, "
                f"{result['comment_counts_fixed']} post comment counts"
            )
        )
