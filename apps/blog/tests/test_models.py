from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TestCase

from apps.blog.models import BlogComment, BlogLike, BlogPost, BlogTag

User = get_user_model()


class BlogModelTestCase(TestCase):
    def setUp(self):
        self.author = User.objects.create_user(email="author@example.com", password="authorpass123")
        self.reader = User.objects.create_user(email="reader@example.com", password="readerpass123")
        self.post = BlogPost.objects.create(
            title="Model post",
            content="Body",
            excerpt="Excerpt",
            author=self.author,
        )

    def test_post_defaults(self):
        self.assertEqual(self.post.status, BlogPost.PostStatus.DRAFT)
        self.assertTrue(self.post.is_draft)
        self.assertEqual(self.post.likes_count, 0)
        self.assertEqual(self.post.comments_count, 0)
        self.assertEqual(self.post.get_absolute_url(), f"/posts/{self.post.pk}/")

    def test_missing_publish_fields(self):
        self.post.excerpt = "   "
        self.post.content = ""
        self.assertEqual(self.post.missing_publish_fields(), ["content", "excerpt"])

    def test_is_owned_by(self):
        self.assertTrue(self.post.is_owned_by(self.author))
        self.assertFalse(self.post.is_owned_by(self.reader))

    def test_visible_to(self):
        published = BlogPost.objects.create(
            title="Public",
            author=self.reader,
            status=BlogPost.PostStatus.PUBLISHED,
            is_draft=False,
        )

        self.assertEqual(set(BlogPost.objects.visible_to(self.author)), {self.post, published})
        self.assertEqual(set(BlogPost.objects.visible_to(self.reader)), {published})

    def test_increment_views(self):
        self.post.increment_views()
        self.post.increment_views()
        self.assertEqual(self.post.views, 2)

    def test_tags_from_names(self):
        existing = BlogTag.objects.create(name="Python")

        tags = BlogTag.from_names(["python", " Django ", "", "DJANGO"])

        self.assertEqual([tag.name for tag in tags], ["Python", "Django"])
        self.assertEqual(tags[0], existing)
        self.assertEqual(tags[1].slug, "django")

    def test_comment_soft_delete(self):
        comment = BlogComment.objects.create(post=self.post, author=self.reader, content="Hi")
        comment.soft_delete()

        comment.refresh_from_db()
        self.assertTrue(comment.is_deleted)
        self.assertEqual(comment.content, "[Comment deleted]")
        self.assertEqual(BlogComment.objects.active().count(), 0)

    def test_like_is_unique_per_user_and_target(self):
        BlogLike.objects.create(user=self.reader, target_type="post", post=self.post)

        with self.assertRaises(IntegrityError), transaction.atomic():
            BlogLike.objects.create(user=self.reader, target_type="post", post=self.post)

    def test_like_target_must_match_type(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            BlogLike.objects.create(user=self.reader, target_type="comment", post=self.post)
