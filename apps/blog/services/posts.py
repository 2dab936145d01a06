import logging
from functools import reduce
from operator import or_
from typing import Any, Dict, Iterable, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.blog.exceptions import (
    DraftIncomplete,
    InvalidPostStatus,
    UnauthorizedPostAccess,
    UnauthorizedPostDelete,
    UnauthorizedPostEdit,
)
from apps.blog.models import BlogAttachment, BlogPost, BlogTag
from apps.uploads import storage

from .lookups import get_post

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")

PostStatus = BlogPost.PostStatus

EDITABLE_FIELDS = ("title", "content", "excerpt", "featured_image", "scheduled_publish_at")

DRAFT_DEFAULTS = {
    "title": "Untitled Draft",
    "content": "",
    "excerpt": "",
}


def _require_owner(post: BlogPost, user, exc_class=UnauthorizedPostEdit, message=None):
    if not post.is_owned_by(user):
        security_logger.warning(
            f"User {getattr(user, 'pk', None)} denied {exc_class.default_code} on post {post.pk}"
        )
        raise exc_class(message) if message else exc_class()


def _require_publishable(post: BlogPost):
    if post.missing_publish_fields():
        raise DraftIncomplete()


def _apply_fields(post: BlogPost, data: Dict[str, Any]):
    for field in EDITABLE_FIELDS:
        if field in data:
            value = data[field]
            if field != "scheduled_publish_at" and value is None:
                value = ""
            setattr(post, field, value)


def _set_tags(post: BlogPost, tags: Optional[Iterable[str]]):
    if tags is not None:
        post.tags.set(BlogTag.from_names(tags))


def _mark_published(post: BlogPost, now=None, keep_published_at: bool = False):
    """Move a post to published. ``published_at`` is stamped unless kept and already set."""
    now = now or timezone.now()
    post.status = PostStatus.PUBLISHED
    post.is_draft = False
    post.scheduled_publish_at = None
    if not (keep_published_at and post.published_at):
        post.published_at = now


# Queries


def visible_posts(user, status: Optional[str] = None):
    queryset = BlogPost.objects.visible_to(user).with_relations()
    if status:
        if status not in PostStatus.values:
            raise InvalidPostStatus(f"Unknown status '{status}'")
        queryset = queryset.filter(status=status)
    return queryset.order_by("-created_at")


def my_posts(user):
    return BlogPost.objects.by_author(user).with_relations().order_by("-created_at")


def my_drafts(user):
    return BlogPost.objects.by_author(user).drafts().with_relations().order_by("-last_saved_at", "-created_at")


def all_drafts():
    return BlogPost.objects.drafts().with_relations().order_by("-last_saved_at", "-created_at")


def scheduled_posts(user):
    """Drafts whose scheduled publish time has arrived."""
    queryset = BlogPost.objects.due_for_publishing().with_relations()
    if not user.is_moderator:
        queryset = queryset.filter(author=user)
    return queryset.order_by("scheduled_publish_at")


def search_posts(query: str = "", tags: Optional[Iterable[str]] = None):
    """Case-insensitive search over published posts."""
    queryset = BlogPost.objects.published()

    query = (query or "").strip()
    if query:
        queryset = queryset.filter(
            Q(title__icontains=query)
            | Q(excerpt__icontains=query)
            | Q(content__icontains=query)
            | Q(tags__name__icontains=query)
        )

    tag_names = [tag.strip() for tag in (tags or []) if tag and tag.strip()]
    if tag_names:
        queryset = queryset.filter(reduce(or_, (Q(tags__name__iexact=name) for name in tag_names)))

    ids = queryset.values("pk")
    return BlogPost.objects.filter(pk__in=ids).with_relations().order_by("-published_at", "-created_at")


def get_post_for_viewer(user, post_id, count_view: bool = True) -> BlogPost:
    """
    Fetch a post for display. Drafts and archived posts are only visible to
    their author and moderators. Views are counted for published posts.
    """
    post = get_post(post_id, queryset=BlogPost.objects.with_relations())

    if not post.is_published:
        is_moderator = user is not None and user.is_authenticated and user.is_moderator
        if not (post.is_owned_by(user) or is_moderator):
            raise UnauthorizedPostAccess()
    elif count_view:
        post.increment_views()

    return post


def preview_draft(user, post_id) -> BlogPost:
    post = get_post(post_id, queryset=BlogPost.objects.with_relations())
    _require_owner(post, user, UnauthorizedPostAccess, "You can only preview your own drafts")
    return post


def engagement(post: BlogPost) -> Dict[str, int]:
    return {
        "likes": post.likes_count,
        "comments": post.comments_count,
        "views": post.views,
    }


# Mutations


@transaction.atomic
def create_post(author, data: Dict[str, Any]) -> BlogPost:
    data = dict(data)
    tags = data.pop("tags", None)
    status = data.pop("status", None) or PostStatus.DRAFT
    now = timezone.now()

    post = BlogPost(author=author, status=status, last_saved_at=now)
    _apply_fields(post, data)
    post.is_draft = status == PostStatus.DRAFT

    if status == PostStatus.PUBLISHED:
        _require_publishable(post)
        _mark_published(post, now)

    post.save()
    _set_tags(post, tags)

    logger.info(f"Post {post.pk} created by user {author.pk} with status {post.status}")
    return post


def create_draft(author, data: Optional[Dict[str, Any]] = None) -> BlogPost:
    data = {**DRAFT_DEFAULTS, **{k: v for k, v in (data or {}).items() if v is not None}}
    data["status"] = PostStatus.DRAFT
    return create_post(author, data)


@transaction.atomic
def update_post(user, post_id, data: Dict[str, Any]) -> BlogPost:
    post = get_post(post_id, for_update=True)
    _require_owner(post, user)

    data = dict(data)
    tags = data.pop("tags", None)
    new_status = data.pop("status", None)
    now = timezone.now()

    _apply_fields(post, data)

    if new_status and new_status != post.status:
        if new_status == PostStatus.PUBLISHED:
            _require_publishable(post)
            _mark_published(post, now, keep_published_at=True)
        else:
            post.status = new_status
            post.is_draft = new_status == PostStatus.DRAFT

    post.last_saved_at = now
    post.save()
    _set_tags(post, tags)

    logger.info(f"Post {post.pk} updated by user {user.pk}")
    return post


@transaction.atomic
def delete_post(user, post_id) -> None:
    post = get_post(post_id, for_update=True)
    _require_owner(post, user, UnauthorizedPostDelete)
    post.delete()
    logger.info(f"Post {post_id} deleted by user {user.pk}")


@transaction.atomic
def auto_save(user, post_id, data: Dict[str, Any]) -> BlogPost:
    post = get_post(post_id, for_update=True)
    _require_owner(post, user)
    if post.status != PostStatus.DRAFT:
        raise InvalidPostStatus("Can only auto-save drafts")

    data = dict(data)
    tags = data.pop("tags", None)
    data.pop("status", None)

    _apply_fields(post, data)
    post.last_saved_at = timezone.now()
    post.save()
    _set_tags(post, tags)

    logger.debug(f"Draft {post.pk} auto-saved")
    return post


@transaction.atomic
def publish_draft(user, post_id, scheduled_publish_at=None, publish_now: bool = False) -> BlogPost:
    """
    Publish a draft immediately, or schedule it. A scheduled draft stays a
    draft until its time comes and it is picked up by ``publish_due_posts``.
    """
    post = get_post(post_id, for_update=True)
    _require_owner(post, user, message="You can only publish your own drafts")
    if post.status != PostStatus.DRAFT:
        raise InvalidPostStatus("Only drafts can be published")
    _require_publishable(post)

    now = timezone.now()
    post.last_saved_at = now

    if publish_now or scheduled_publish_at is None or scheduled_publish_at <= now:
        _mark_published(post, now)
        logger.info(f"Draft {post.pk} published by user {user.pk}")
    else:
        post.scheduled_publish_at = scheduled_publish_at
        logger.info(f"Draft {post.pk} scheduled for {scheduled_publish_at.isoformat()}")

    post.save()
    return post


@transaction.atomic
def archive_post(user, post_id) -> BlogPost:
    post = get_post(post_id, for_update=True)
    _require_owner(post, user, message="You can only archive your own posts")
    if post.is_archived:
        raise InvalidPostStatus("Post is already archived")

    post.status = PostStatus.ARCHIVED
    post.is_draft = False
    post.scheduled_publish_at = None
    post.save()

    logger.info(f"Post {post.pk} archived by user {user.pk}")
    return post


@transaction.atomic
def restore_post(user, post_id) -> BlogPost:
    post = get_post(post_id, for_update=True)
    _require_owner(post, user, message="You can only restore your own posts")
    if not post.is_archived:
        raise InvalidPostStatus("Only archived posts can be restored")

    post.status = PostStatus.DRAFT
    post.is_draft = True
    post.last_saved_at = timezone.now()
    post.save()

    logger.info(f"Post {post.pk} restored to draft by user {user.pk}")
    return post


@transaction.atomic
def publish_scheduled(user, post_id) -> BlogPost:
    post = get_post(post_id, for_update=True)
    if not user.is_moderator:
        _require_owner(post, user, message="You can only publish your own posts")
    if not post.is_scheduled:
        raise InvalidPostStatus("Post is not scheduled for publishing")

    _mark_published(post)
    post.save()

    logger.info(f"Scheduled post {post.pk} published by user {user.pk}")
    return post


def publish_due_posts(now=None) -> int:
    """Publish every draft whose schedule has passed. Returns the number published."""
    now = now or timezone.now()
    published = 0

    for post_id in BlogPost.objects.due_for_publishing(now).values_list("pk", flat=True):
        with transaction.atomic():
            post = BlogPost.objects.select_for_update().filter(pk=post_id).first()
            if post is None or not post.is_scheduled or post.scheduled_publish_at > now:
                continue
            if post.missing_publish_fields():
                logger.warning(f"Scheduled post {post.pk} skipped: missing required fields")
                continue
            _mark_published(post, now)
            post.save()
            published += 1

    if published:
        logger.info(f"Published {published} scheduled posts")
    return published


# Featured image and attachments


@transaction.atomic
def set_featured_image(user, post_id, upload) -> BlogPost:
    post = get_post(post_id, for_update=True)
    _require_owner(post, user)

    stored = storage.save_upload(upload, field_name="featuredImage", images_only=True)
    with storage.discard_on_error(stored):
        post.featured_image = stored["url"]
        post.save(update_fields=["featured_image", "updated_at"])
    return post


@transaction.atomic
def remove_featured_image(user, post_id) -> BlogPost:
    post = get_post(post_id, for_update=True)
    _require_owner(post, user)

    post.featured_image = ""
    post.save(update_fields=["featured_image", "updated_at"])
    return post


@transaction.atomic
def add_attachment(user, post_id, upload) -> BlogPost:
    post = get_post(post_id, for_update=True)
    _require_owner(post, user)

    stored = storage.save_upload(
        upload,
        field_name="attachment",
        allowed_mime_types=storage.DOCUMENT_MIME_TYPES,
    )
    with storage.discard_on_error(stored):
        BlogAttachment.objects.get_or_create(
            post=post,
            url=stored["url"],
            defaults={
                "type": (
                    BlogAttachment.AttachmentType.IMAGE
                    if storage.is_image(stored["mimetype"])
                    else BlogAttachment.AttachmentType.DOCUMENT
                ),
                "original_name": stored["original_name"],
                "size": stored["size"],
                "mime_type": stored["mimetype"],
                "uploaded_by": user,
            },
        )
    return post


@transaction.atomic
def remove_attachment(user, post_id, url: str) -> BlogPost:
    post = get_post(post_id, for_update=True)
    _require_owner(post, user)

    if not (url or "").strip():
        raise ValidationError({"url": ["Attachment URL is required"]})

    post.attachments.filter(url=url.strip()).delete()
    return post
