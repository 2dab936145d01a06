import uuid
from unittest import mock

from django.urls import reverse
from rest_framework import status

from apps.blog.models import BlogComment, BlogLike, BlogPost
from apps.blog.services import likes as like_service

from .base import BlogAPITestCase


class LikeToggleAPITest(BlogAPITestCase):
    def toggle(self, target_type, target_id, **extra):
        payload = {"target_type": target_type, "target_id": str(target_id), **extra}
        return self.client.post(reverse("blog:likes-toggle"), payload, format="json")

    def test_like_and_unlike_post(self):
        self.authenticate_user(self.user)

        response = self.toggle("post", self.post.pk)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"liked": True, "count": 1, "message": "Like added"})
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 1)

        response = self.toggle("post", self.post.pk)
        self.assertEqual(response.data, {"liked": False, "count": 0, "message": "Like removed"})
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 0)

    def test_like_comment(self):
        comment = self.create_comment()
        self.authenticate_user(self.author)

        response = self.toggle("comment", comment.pk)

        self.assertTrue(response.data["liked"])
        comment.refresh_from_db()
        self.assertEqual(comment.likes_count, 1)
        like = BlogLike.objects.get(user=self.author)
        self.assertEqual(like.target_type, BlogLike.TargetType.COMMENT)
        self.assertEqual(like.target_id, comment.pk)

    def test_target_id_under_type_key(self):
        self.authenticate_user(self.user)
        response = self.client.post(
            reverse("blog:likes-toggle"),
            {"target_type": "post", "post": str(self.post.pk)},
            format="json",
        )
        self.assertTrue(response.data["liked"])

    def test_toggle_requires_target(self):
        self.authenticate_user(self.user)
        response = self.client.post(reverse("blog:likes-toggle"), {"target_type": "post"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_toggle_rejects_unknown_type(self):
        self.authenticate_user(self.user)
        response = self.toggle("author", self.author.pk)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_toggle_missing_target(self):
        self.authenticate_user(self.user)
        response = self.toggle("post", uuid.uuid4())
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_toggle_requires_authentication(self):
        response = self.toggle("post", self.post.pk)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_concurrent_duplicate_is_already_liked(self):
        """Test a like inserted by a racing request is reported, not double counted."""
        BlogLike.objects.create(user=self.user, target_type="post", post=self.post)
        BlogPost.objects.filter(pk=self.post.pk).update(likes_count=1)

        # the racing insert lands between our lookup and our insert
        with mock.patch("django.db.models.query.QuerySet.first", return_value=None):
            result = like_service.toggle_like(self.user, "post", self.post.pk)

        self.assertEqual(result, {"liked": True, "count": 1, "message": "Already liked"})
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 1)
        self.assertEqual(BlogLike.objects.filter(post=self.post).count(), 1)

    def test_unlike_never_drives_counter_negative(self):
        BlogLike.objects.create(user=self.user, target_type="post", post=self.post)

        result = like_service.toggle_like(self.user, "post", self.post.pk)

        self.assertFalse(result["liked"])
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 0)

    def test_like_status(self):
        BlogLike.objects.create(user=self.user, target_type="post", post=self.post)
        self.authenticate_user(self.user)

        response = self.client.get(
            reverse("blog:likes-status"),
            {"target_type": "post", "target_id": str(self.post.pk)},
        )
        self.assertEqual(response.data, {"liked": True})

        self.authenticate_user(self.author)
        response = self.client.get(
            reverse("blog:likes-status"),
            {"target_type": "post", "target_id": str(self.post.pk)},
        )
        self.assertEqual(response.data, {"liked": False})

    def test_likes_for_post(self):
        BlogLike.objects.create(user=self.user, target_type="post", post=self.post)
        BlogLike.objects.create(user=self.author, target_type="post", post=self.post)

        response = self.client.get(reverse("blog:likes-post", kwargs={"post_id": self.post.pk}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 2)
        emails = {like["user"]["email"] for like in response.data["likes"]}
        self.assertEqual(emails, {"test@example.com", "author@example.com"})

    def test_likes_for_comment(self):
        comment = self.create_comment()
        BlogLike.objects.create(user=self.author, target_type="comment", comment=comment)

        response = self.client.get(reverse("blog:likes-comment", kwargs={"comment_id": comment.pk}))

        self.assertEqual(response.data["count"], 1)


class CounterSyncAPITest(BlogAPITestCase):
    def test_sync_post(self):
        BlogLike.objects.create(user=self.user, target_type="post", post=self.post)
        BlogPost.objects.filter(pk=self.post.pk).update(likes_count=7)
        self.authenticate_user(self.user)

        response = self.client.post(reverse("blog:likes-sync-post", kwargs={"post_id": self.post.pk}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"count": 1, "synced": True})
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 1)

    def test_sync_comment(self):
        comment = self.create_comment()
        BlogComment.objects.filter(pk=comment.pk).update(likes_count=4)
        self.authenticate_user(self.user)

        response = self.client.post(reverse("blog:likes-sync-comment", kwargs={"comment_id": comment.pk}))

        self.assertEqual(response.data["count"], 0)
        comment.refresh_from_db()
        self.assertEqual(comment.likes_count, 0)

    def test_sync_all_requires_moderator(self):
        self.authenticate_user(self.user)
        response = self.client.post(reverse("blog:likes-sync-all"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_sync_all(self):
        comment = self.create_comment()
        BlogLike.objects.create(user=self.user, target_type="post", post=self.post)
        BlogLike.objects.create(user=self.author, target_type="comment", comment=comment)
        BlogPost.objects.filter(pk=self.post.pk).update(likes_count=0, comments_count=5)
        BlogPost.objects.filter(pk=self.draft_post.pk).update(likes_count=2)
        self.authenticate_user(self.moderator)

        response = self.client.post(reverse("blog:likes-sync-all"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.data,
            {"posts_fixed": 2, "comments_fixed": 1, "comment_counts_fixed": 1},
        )
        self.post.refresh_from_db()
        self.draft_post.refresh_from_db()
        comment.refresh_from_db()
        self.assertEqual(self.post.likes_count, 1)
        self.assertEqual(self.post.comments_count, 1)
        self.assertEqual(self.draft_post.likes_count, 0)
        self.assertEqual(comment.likes_count, 1)
