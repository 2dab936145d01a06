import uuid
from datetime import timedelta

from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.blog.models import BlogComment, BlogPost
from apps.blog.services import comments as comment_service

from .base import BlogAPITestCase


class CommentThreadAPITest(BlogAPITestCase):
    """Comment creation and the nested tree returned for a post."""

    def thread_url(self, post=None):
        return reverse("blog:post-comments-list", kwargs={"post_pk": (post or self.post).pk})

    def build_thread(self):
        """root_old -> reply -> nested_reply, plus a newer root without replies."""
        root_old = self.create_comment(content="First root")
        reply = self.create_comment(parent=root_old, author=self.author, content="Reply")
        nested = self.create_comment(parent=reply, content="Nested reply")
        root_new = self.create_comment(content="Second root")

        base = timezone.now() - timedelta(hours=1)
        for offset, comment in enumerate([root_old, reply, nested, root_new]):
            BlogComment.objects.filter(pk=comment.pk).update(created_at=base + timedelta(minutes=offset))
        return root_old, reply, nested, root_new

    def test_create_comment(self):
        self.authenticate_user(self.user)
        response = self.client.post(self.thread_url(), {"content": "  Great read  "}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["content"], "Great read")
        self.assertIsNone(response.data["parent"])
        self.assertEqual(response.data["author"]["email"], "test@example.com")

        self.post.refresh_from_db()
        self.assertEqual(self.post.comments_count, 1)

    def test_create_comment_unauthenticated(self):
        response = self.client.post(self.thread_url(), {"content": "Hi"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_comment_blank_content(self):
        self.authenticate_user(self.user)
        response = self.client.post(self.thread_url(), {"content": "   "}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("content", response.data["error"]["details"])

    def test_create_comment_on_missing_post(self):
        self.authenticate_user(self.user)
        response = self.client.post(
            reverse("blog:post-comments-list", kwargs={"post_pk": uuid.uuid4()}),
            {"content": "Hello?"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_reply(self):
        root = self.create_comment()
        self.authenticate_user(self.author)

        response = self.client.post(self.thread_url(), {"content": "Thanks!", "parent": str(root.pk)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["parent"], root.pk)
        self.post.refresh_from_db()
        self.assertEqual(self.post.comments_count, 2)

    def test_reply_to_missing_parent(self):
        self.authenticate_user(self.user)
        response = self.client.post(self.thread_url(), {"content": "Orphan", "parent": str(uuid.uuid4())}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["message"], "Parent comment not found")

    def test_reply_to_comment_on_other_post(self):
        other_post = self.create_post(title="Other")
        foreign = self.create_comment(post=other_post)
        self.authenticate_user(self.user)

        response = self.client.post(self.thread_url(), {"content": "Mixup", "parent": str(foreign.pk)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"]["message"], "Parent comment does not belong to this blog post")

    def test_create_through_flat_endpoint(self):
        self.authenticate_user(self.user)
        response = self.client.post(
            reverse("blog:comments-list"),
            {"content": "Flat", "post": str(self.post.pk)},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        missing_post = self.client.post(reverse("blog:comments-list"), {"content": "Flat"}, format="json")
        self.assertEqual(missing_post.status_code, status.HTTP_400_BAD_REQUEST)

    def test_tree(self):
        root_old, reply, nested, root_new = self.build_thread()

        response = self.client.get(self.thread_url())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 2)
        comments = response.data["comments"]
        self.assertEqual([c["id"] for c in comments], [str(root_new.pk), str(root_old.pk)])
        self.assertEqual(comments[0]["replies"], [])

        replies = comments[1]["replies"]
        self.assertEqual([c["id"] for c in replies], [str(reply.pk)])
        self.assertEqual(replies[0]["replies"][0]["id"], str(nested.pk))
        self.assertEqual(comments[1]["replies_count"], 1)

    def test_tree_pagination(self):
        self.build_thread()
        response = self.client.get(self.thread_url(), {"page": 2, "limit": 1})

        self.assertEqual(response.data["total"], 2)
        self.assertEqual(response.data["page"], 2)
        self.assertEqual(response.data["limit"], 1)
        self.assertEqual(response.data["comments"][0]["content"], "First root")

    def test_tree_for_invalid_post_id(self):
        response = self.client.get(reverse("blog:post-comments-list", kwargs={"post_pk": "nope"}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["comments"], [])
        self.assertEqual(response.data["total"], 0)

    def test_deleted_comment_hides_subtree(self):
        root_old, reply, nested, root_new = self.build_thread()
        comment_service.delete_comment(self.author, reply.pk)

        response = self.client.get(self.thread_url())

        root = next(c for c in response.data["comments"] if c["id"] == str(root_old.pk))
        self.assertEqual(root["replies"], [])

    @override_settings(BLOG_COMMENT_MAX_DEPTH=1)
    def test_tree_depth_limit(self):
        root_old, reply, nested, root_new = self.build_thread()

        response = self.client.get(self.thread_url())

        root = next(c for c in response.data["comments"] if c["id"] == str(root_old.pk))
        self.assertEqual(root["replies"][0]["id"], str(reply.pk))
        self.assertEqual(root["replies"][0]["replies"], [])

    def test_replies_endpoint(self):
        root_old, reply, nested, root_new = self.build_thread()

        response = self.client.get(reverse("blog:comments-replies", kwargs={"pk": root_old.pk}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c["id"] for c in response.data], [str(reply.pk)])
        self.assertEqual(response.data[0]["replies"][0]["id"], str(nested.pk))

    def test_replies_survive_cycles(self):
        first = self.create_comment(content="first")
        second = self.create_comment(content="second")
        BlogComment.objects.filter(pk=first.pk).update(parent=second)
        BlogComment.objects.filter(pk=second.pk).update(parent=first)

        replies = comment_service.replies(first.pk)

        self.assertEqual([c.pk for c in replies], [second.pk])
        self.assertEqual(replies[0].thread_replies, [])


class CommentEditDeleteAPITest(BlogAPITestCase):
    def setUp(self):
        super().setUp()
        self.comment = self.create_comment(content="Original")

    def detail_url(self, comment=None):
        return reverse("blog:comments-detail", kwargs={"pk": (comment or self.comment).pk})

    def test_retrieve(self):
        response = self.client.get(self.detail_url())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["content"], "Original")

    def test_retrieve_invalid_id(self):
        response = self.client.get(reverse("blog:comments-detail", kwargs={"pk": "123"}))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_own_comment(self):
        self.authenticate_user(self.user)
        response = self.client.patch(self.detail_url(), {"content": "Edited"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["content"], "Edited")

    def test_update_other_users_comment(self):
        self.authenticate_user(self.author)
        response = self.client.patch(self.detail_url(), {"content": "Edited"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.comment.refresh_from_db()
        self.assertEqual(self.comment.content, "Original")

    def test_update_deleted_comment(self):
        self.comment.soft_delete()
        self.authenticate_user(self.user)

        response = self.client.patch(self.detail_url(), {"content": "Back from the dead"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"]["message"], "Cannot update deleted comment")

    def test_soft_delete(self):
        self.authenticate_user(self.user)
        response = self.client.delete(self.detail_url())

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.comment.refresh_from_db()
        self.assertTrue(self.comment.is_deleted)
        self.assertEqual(self.comment.content, BlogComment.DELETED_PLACEHOLDER)
        self.post.refresh_from_db()
        self.assertEqual(self.post.comments_count, 0)

    def test_delete_twice(self):
        self.authenticate_user(self.user)
        self.client.delete(self.detail_url())

        response = self.client.delete(self.detail_url())
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.post.refresh_from_db()
        self.assertEqual(self.post.comments_count, 0)

    def test_delete_other_users_comment(self):
        self.authenticate_user(self.author)
        response = self.client.delete(self.detail_url())

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.comment.refresh_from_db()
        self.assertFalse(self.comment.is_deleted)

    def test_moderator_can_delete(self):
        self.authenticate_user(self.moderator)
        response = self.client.delete(self.detail_url())
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_delete_never_drives_counter_negative(self):
        BlogPost.objects.filter(pk=self.post.pk).update(comments_count=0)
        comment_service.delete_comment(self.user, self.comment.pk)

        self.post.refresh_from_db()
        self.assertEqual(self.post.comments_count, 0)
