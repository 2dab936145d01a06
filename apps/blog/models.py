import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.urls import reverse
from django.utils import timezone
from django.utils.text import slugify
from django.utils.translation import gettext_lazy as _


class BlogTag(models.Model):
    class Meta:
        verbose_name = _("Blog Tag")
        verbose_name_plural = _("Blog Tags")
        ordering = ["name"]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(_("Name"), max_length=50, unique=True)
    slug = models.SlugField(_("Slug"), unique=True, max_length=60)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            slug = slugify(self.name)
            if not slug or BlogTag.objects.filter(slug=slug).exists():
                slug = f"{slug}-{uuid.uuid4().hex[:8]}".strip("-")
            self.slug = slug
        super().save(*args, **kwargs)

    @classmethod
    def from_names(cls, names):
        """Return tags for the given names, creating the missing ones."""
        tags = []
        seen = set()
        for raw in names:
            name = (raw or "").strip()
            if not name or name.lower() in seen:
                continue
            seen.add(name.lower())
            tag = cls.objects.filter(name__iexact=name).first()
            if tag is None:
                tag = cls.objects.create(name=name)
            tags.append(tag)
        return tags


class BlogPostQuerySet(models.QuerySet):
    """Custom queryset for BlogPost."""

    def published(self):
        return self.filter(status=BlogPost.PostStatus.PUBLISHED)

    def drafts(self):
        return self.filter(status=BlogPost.PostStatus.DRAFT, is_draft=True)

    def by_author(self, user):
        return self.filter(author=user)

    def visible_to(self, user):
        """Published posts, plus everything the user authored."""
        if user is not None and user.is_authenticated:
            return self.filter(Q(status=BlogPost.PostStatus.PUBLISHED) | Q(author=user))
        return self.published()

    def due_for_publishing(self, now=None):
        now = now or timezone.now()
        return self.filter(
            status=BlogPost.PostStatus.DRAFT,
            scheduled_publish_at__isnull=False,
            scheduled_publish_at__lte=now,
        )

    def with_relations(self):
        return self.select_related("author").prefetch_related("tags", "attachments")


class BlogPost(models.Model):
    """
    A blog post. ``likes_count``, ``comments_count`` and ``views`` are
    denormalized counters maintained with ``F()`` updates.
    """

    class PostStatus(models.TextChoices):
        DRAFT = "draft", _("Draft")
        PUBLISHED = "published", _("Published")
        ARCHIVED = "archived", _("Archived")

    class Meta:
        verbose_name = _("Blog Post")
        verbose_name_plural = _("Blog Posts")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["author", "-created_at"], name="blog_post_author_idx"),
            models.Index(fields=["status", "-published_at"], name="blog_post_status_idx"),
            models.Index(fields=["is_draft", "-last_saved_at"], name="blog_post_draft_idx"),
            models.Index(fields=["scheduled_publish_at"], name="blog_post_schedule_idx"),
            models.Index(fields=["-created_at"], name="blog_post_created_idx"),
        ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(_("Title"), max_length=300)
    content = models.TextField(_("Content"), blank=True)
    excerpt = models.TextField(_("Excerpt"), max_length=1000, blank=True)
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="blog_posts",
        verbose_name=_("Author"),
    )
    tags = models.ManyToManyField(
        BlogTag,
        blank=True,
        related_name="blog_posts",
        verbose_name=_("Tags"),
    )
    status = models.CharField(
        _("Status"),
        max_length=20,
        choices=PostStatus.choices,
        default=PostStatus.DRAFT,
    )
    is_draft = models.BooleanField(_("Is Draft"), default=True)

    views = models.PositiveIntegerField(_("Views"), default=0, editable=False)
    likes_count = models.PositiveIntegerField(_("Likes Count"), default=0, editable=False)
    comments_count = models.PositiveIntegerField(_("Comments Count"), default=0, editable=False)

    published_at = models.DateTimeField(_("Published At"), null=True, blank=True)
    last_saved_at = models.DateTimeField(_("Last Saved At"), null=True, blank=True)
    scheduled_publish_at = models.DateTimeField(_("Scheduled Publish At"), null=True, blank=True)

    featured_image = models.CharField(_("Featured Image"), max_length=500, blank=True)

    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    objects = BlogPostQuerySet.as_manager()

    def __str__(self):
        return self.title

    def get_absolute_url(self):
        return reverse("web:post-detail", kwargs={"pk": self.pk})

    def is_owned_by(self, user) -> bool:
        return user is not None and user.is_authenticated and self.author_id == user.pk

    @property
    def is_published(self) -> bool:
        return self.status == self.PostStatus.PUBLISHED

    @property
    def is_archived(self) -> bool:
        return self.status == self.PostStatus.ARCHIVED

    @property
    def is_scheduled(self) -> bool:
        return self.status == self.PostStatus.DRAFT and self.scheduled_publish_at is not None

    def missing_publish_fields(self):
        """Names of the fields that must be filled before publishing."""
        return [field for field in ("title", "content", "excerpt") if not (getattr(self, field) or "").strip()]

    def increment_views(self):
        BlogPost.objects.filter(pk=self.pk).update(views=models.F("views") + 1)
        self.refresh_from_db(fields=["views"])


class BlogAttachment(models.Model):
    """
    A file attached to a post. Attachments are keyed by their public URL,
    which is unique per post.
    """

    class AttachmentType(models.TextChoices):
        IMAGE = "image", _("Image")
        DOCUMENT = "document", _("Document")

    class Meta:
        verbose_name = _("Blog Attachment")
        verbose_name_plural = _("Blog Attachments")
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["post", "url"], name="unique_attachment_url_per_post"),
        ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post = models.ForeignKey(
        BlogPost,
        on_delete=models.CASCADE,
        related_name="attachments",
        verbose_name=_("Post"),
    )
    url = models.CharField(_("URL"), max_length=500)
    type = models.CharField(_("Type"), max_length=20, choices=AttachmentType.choices)
    original_name = models.CharField(_("Original Name"), max_length=255, blank=True)
    size = models.PositiveIntegerField(_("Size"), default=0, help_text=_("File size in bytes"))
    mime_type = models.CharField(_("MIME Type"), max_length=100, blank=True)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="uploaded_attachments",
        verbose_name=_("Uploaded By"),
    )

    def __str__(self):
        return f"{self.type.title()} - {self.original_name or self.url}"


class BlogCommentQuerySet(models.QuerySet):
    """Custom queryset for BlogComment."""

    def active(self):
        return self.filter(is_deleted=False)

    def top_level(self):
        return self.filter(parent__isnull=True)


class BlogComment(models.Model):
    """
    Threaded comment. Deletion is soft: the row stays so the thread keeps
    its shape, but the content is replaced.
    """

    DELETED_PLACEHOLDER = "[Comment deleted]"

    class Meta:
        verbose_name = _("Blog Comment")
        verbose_name_plural = _("Blog Comments")
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["post", "parent", "-created_at"], name="blog_comment_thread_idx"),
            models.Index(fields=["author", "created_at"], name="blog_comment_author_idx"),
            models.Index(fields=["parent", "created_at"], name="blog_comment_parent_idx"),
        ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post = models.ForeignKey(
        BlogPost,
        on_delete=models.CASCADE,
        related_name="comments",
        verbose_name=_("Post"),
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="blog_comments",
        verbose_name=_("Author"),
    )
    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="replies",
        verbose_name=_("Parent Comment"),
    )
    content = models.TextField(_("Content"), max_length=5000)
    is_deleted = models.BooleanField(_("Is Deleted"), default=False)
    likes_count = models.PositiveIntegerField(_("Likes Count"), default=0, editable=False)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    objects = BlogCommentQuerySet.as_manager()

    def __str__(self):
        return f"Comment by {self.author} on {self.post_id}"

    def is_owned_by(self, user) -> bool:
        return user is not None and user.is_authenticated and self.author_id == user.pk

    def soft_delete(self):
        self.is_deleted = True
        self.content = self.DELETED_PLACEHOLDER
        self.save(update_fields=["is_deleted", "content", "updated_at"])


class BlogLike(models.Model):
    """
    A like on either a post or a comment. ``target_type`` says which of the
    two foreign keys is set; each user can like a target once.
    """

    class TargetType(models.TextChoices):
        POST = "post", _("Post")
        COMMENT = "comment", _("Comment")

    class Meta:
        verbose_name = _("Blog Like")
        verbose_name_plural = _("Blog Likes")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "post"],
                condition=Q(post__isnull=False),
                name="unique_like_per_user_post",
            ),
            models.UniqueConstraint(
                fields=["user", "comment"],
                condition=Q(comment__isnull=False),
                name="unique_like_per_user_comment",
            ),
            models.CheckConstraint(
                condition=(
                    Q(target_type="post", post__isnull=False, comment__isnull=True)
                    | Q(target_type="comment", comment__isnull=False, post__isnull=True)
                ),
                name="like_target_matches_type",
            ),
        ]
        indexes = [
            models.Index(fields=["post", "user"], name="blog_like_post_idx"),
            models.Index(fields=["comment", "user"], name="blog_like_comment_idx"),
        ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="blog_likes",
        verbose_name=_("User"),
    )
    target_type = models.CharField(_("Target Type"), max_length=10, choices=TargetType.choices)
    post = models.ForeignKey(
        BlogPost,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="likes",
        verbose_name=_("Post"),
    )
    comment = models.ForeignKey(
        BlogComment,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="likes",
        verbose_name=_("Comment"),
    )
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)

    def __str__(self):
        return f"{self.user} likes {self.target_type} {self.post_id or self.comment_id}"

    @property
    def target_id(self):
        return self.post_id if self.target_type == self.TargetType.POST else self.comment_id
