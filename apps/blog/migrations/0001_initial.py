import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="BlogTag",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=50, unique=True, verbose_name="Name")),
                ("slug", models.SlugField(max_length=60, unique=True, verbose_name="Slug")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
            ],
            options={
                "verbose_name": "Blog Tag",
                "verbose_name_plural": "Blog Tags",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="BlogPost",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=300, verbose_name="Title")),
                ("content", models.TextField(blank=True, verbose_name="Content")),
                ("excerpt", models.TextField(blank=True, max_length=1000, verbose_name="Excerpt")),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("published", "Published"), ("archived", "Archived")],
                        default="draft",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("is_draft", models.BooleanField(default=True, verbose_name="Is Draft")),
                ("views", models.PositiveIntegerField(default=0, editable=False, verbose_name="Views")),
                ("likes_count", models.PositiveIntegerField(default=0, editable=False, verbose_name="Likes Count")),
                ("comments_count", models.PositiveIntegerField(default=0, editable=False, verbose_name="Comments Count")),
                ("published_at", models.DateTimeField(blank=True, null=True, verbose_name="Published At")),
                ("last_saved_at", models.DateTimeField(blank=True, null=True, verbose_name="Last Saved At")),
                ("scheduled_publish_at", models.DateTimeField(blank=True, null=True, verbose_name="Scheduled Publish At")),
                ("featured_image", models.CharField(blank=True, max_length=500, verbose_name="Featured Image")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "author",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="blog_posts",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Author",
                    ),
                ),
                (
                    "tags",
                    models.ManyToManyField(blank=True, related_name="blog_posts", to="blog.blogtag", verbose_name="Tags"),
                ),
            ],
            options={
                "verbose_name": "Blog Post",
                "verbose_name_plural": "Blog Posts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["author", "-created_at"], name="blog_post_author_idx"),
                    models.Index(fields=["status", "-published_at"], name="blog_post_status_idx"),
                    models.Index(fields=["is_draft", "-last_saved_at"], name="blog_post_draft_idx"),
                    models.Index(fields=["scheduled_publish_at"], name="blog_post_schedule_idx"),
                    models.Index(fields=["-created_at"], name="blog_post_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BlogAttachment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("url", models.CharField(max_length=500, verbose_name="URL")),
                (
                    "type",
                    models.CharField(
                        choices=[("image", "Image"), ("document", "Document")],
                        max_length=20,
                        verbose_name="Type",
                    ),
                ),
                ("original_name", models.CharField(blank=True, max_length=255, verbose_name="Original Name")),
                ("size", models.PositiveIntegerField(default=0, help_text="File size in bytes", verbose_name="Size")),
                ("mime_type", models.CharField(blank=True, max_length=100, verbose_name="MIME Type")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                (
                    "post",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attachments",
                        to="blog.blogpost",
                        verbose_name="Post",
                    ),
                ),
                (
                    "uploaded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="uploaded_attachments",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Uploaded By",
                    ),
                ),
            ],
            options={
                "verbose_name": "Blog Attachment",
                "verbose_name_plural": "Blog Attachments",
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("post", "url"), name="unique_attachment_url_per_post"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BlogComment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("content", models.TextField(max_length=5000, verbose_name="Content")),
                ("is_deleted", models.BooleanField(default=False, verbose_name="Is Deleted")),
                ("likes_count", models.PositiveIntegerField(default=0, editable=False, verbose_name="Likes Count")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "author",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="blog_comments",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Author",
                    ),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="replies",
                        to="blog.blogcomment",
                        verbose_name="Parent Comment",
                    ),
                ),
                (
                    "post",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="comments",
                        to="blog.blogpost",
                        verbose_name="Post",
                    ),
                ),
            ],
            options={
                "verbose_name": "Blog Comment",
                "verbose_name_plural": "Blog Comments",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["post", "parent", "-created_at"], name="blog_comment_thread_idx"),
                    models.Index(fields=["author", "created_at"], name="blog_comment_author_idx"),
                    models.Index(fields=["parent", "created_at"], name="blog_comment_parent_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BlogLike",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "target_type",
                    models.CharField(
                        choices=[("post", "Post"), ("comment", "Comment")],
                        max_length=10,
                        verbose_name="Target Type",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                (
                    "comment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="likes",
                        to="blog.blogcomment",
                        verbose_name="Comment",
                    ),
                ),
                (
                    "post",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="likes",
                        to="blog.blogpost",
                        verbose_name="Post",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="blog_likes",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="User",
                    ),
                ),
            ],
            options={
                "verbose_name": "Blog Like",
                "verbose_name_plural": "Blog Likes",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["post", "user"], name="blog_like_post_idx"),
                    models.Index(fields=["comment", "user"], name="blog_like_comment_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("post__isnull", False)),
                        fields=("user", "post"),
                        name="unique_like_per_user_post",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("comment__isnull", False)),
                        fields=("user", "comment"),
                        name="unique_like_per_user_comment",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("comment__isnull", True), ("post__isnull", False), ("target_type", "post")),
                            models.Q(("comment__isnull", False), ("post__isnull", True), ("target_type", "comment")),
                            _connector="OR",
                        ),
                        name="like_target_matches_type",
                    ),
                ],
            },
        ),
    ]
