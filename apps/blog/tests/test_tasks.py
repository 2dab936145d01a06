from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.utils import timezone

from apps.blog import tasks
from apps.blog.models import BlogLike, BlogPost

from .base import BlogAPITestCase


class BlogTaskTestCase(BlogAPITestCase):
    """Background tasks and their management command twins."""

    def schedule_draft(self, minutes_ago=5):
        BlogPost.objects.filter(pk=self.draft_post.pk).update(
            scheduled_publish_at=timezone.now() - timedelta(minutes=minutes_ago)
        )

    def test_publish_scheduled_posts_task(self):
        self.schedule_draft()

        published = tasks.publish_scheduled_posts.apply().get()

        self.assertEqual(published, 1)
        self.draft_post.refresh_from_db()
        self.assertEqual(self.draft_post.status, BlogPost.PostStatus.PUBLISHED)

    def test_incomplete_scheduled_draft_is_skipped(self):
        BlogPost.objects.filter(pk=self.draft_post.pk).update(excerpt="")
        self.schedule_draft()

        self.assertEqual(tasks.publish_scheduled_posts.apply().get(), 0)
        self.draft_post.refresh_from_db()
        self.assertEqual(self.draft_post.status, BlogPost.PostStatus.DRAFT)

    def test_sync_blog_counters_task(self):
        BlogLike.objects.create(user=self.user, target_type="post", post=self.post)

        result = tasks.sync_blog_counters.apply().get()

        self.assertEqual(result["posts_fixed"], 1)
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 1)

    def test_publish_scheduled_command(self):
        self.schedule_draft()
        out = StringIO()

        call_command("publish_scheduled", stdout=out)

        self.assertIn("Published 1 scheduled posts", out.getvalue())

    def test_sync_counters_command(self):
        BlogPost.objects.filter(pk=self.post.pk).update(likes_count=3)
        out = StringIO()

        call_command("sync_counters", stdout=out)

        self.assertIn("1 post like counts", out.getvalue())
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 0)
