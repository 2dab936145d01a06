from django.core.management.base import BaseCommand

from apps.blog.services import posts as post_service


class Command(BaseCommand):
    help = "Publish drafts whose scheduled publish time has passed"

    def handle(self, *args, **options):
        published = post_service.publish_due_posts()
        self.stdout.write(self.style.SUCCESS(f"Published {published} scheduled posts"))
