import logging
from typing import Any, Dict

from django.db import IntegrityError, transaction
from django.db.models import Count, F, OuterRef, Q, Subquery, Value
from django.db.models.functions import Coalesce

from apps.blog.exceptions import InvalidLikeTarget
from apps.blog.models import BlogComment, BlogLike, BlogPost

from . import comments as comment_service
from .lookups import get_comment, get_post, parse_id

logger = logging.getLogger(__name__)

TargetType = BlogLike.TargetType

TARGET_MODELS = {
    TargetType.POST: BlogPost,
    TargetType.COMMENT: BlogComment,
}


def _resolve_target(target_type, target_id):
    """Return ``(field_name, target)`` for a like target, validating both parts."""
    if target_type not in TargetType.values:
        raise InvalidLikeTarget(f"target_type must be one of: {', '.join(TargetType.values)}")
    if not target_id:
        raise InvalidLikeTarget(f"{target_type} id is required")

    if target_type == TargetType.POST:
        return "post", get_post(target_id)
    return "comment", get_comment(target_id)


def _adjust_counter(target, delta: int):
    model = type(target)
    queryset = model.objects.filter(pk=target.pk)
    if delta < 0:
        queryset = queryset.filter(likes_count__gt=0)
    queryset.update(likes_count=F("likes_count") + delta)


def _count(field: str, target) -> int:
    return BlogLike.objects.filter(**{field: target}).count()


def toggle_like(user, target_type: str, target_id) -> Dict[str, Any]:
    """
    Like or unlike a post or comment.

    Removing an existing like decrements the target's counter. Adding one
    increments it; if a concurrent request inserted the same like first,
    the unique constraint rejects ours and the call reports "Already liked"
    without touching the counter. ``count`` is always the real row count.
    """
    field, target = _resolve_target(target_type, target_id)
    lookup = {field: target}

    with transaction.atomic():
        existing = BlogLike.objects.filter(user=user, **lookup).first()

        if existing is not None:
            deleted, _ = BlogLike.objects.filter(pk=existing.pk).delete()
            if deleted:
                _adjust_counter(target, -1)
            liked, message = False, "Like removed"
        else:
            try:
                with transaction.atomic():
                    BlogLike.objects.create(user=user, target_type=target_type, **lookup)
            except IntegrityError:
                logger.info(f"Duplicate like by user {user.pk} on {target_type} {target.pk}")
                return {"liked": True, "count": _count(field, target), "message": "Already liked"}
            _adjust_counter(target, 1)
            liked, message = True, "Like added"

    return {"liked": liked, "count": _count(field, target), "message": message}


def like_status(user, target_type: str, target_id) -> Dict[str, bool]:
    if target_type not in TargetType.values:
        raise InvalidLikeTarget(f"target_type must be one of: {', '.join(TargetType.values)}")
    if not target_id:
        raise InvalidLikeTarget(f"{target_type} id is required")

    field = "post_id" if target_type == TargetType.POST else "comment_id"
    liked = BlogLike.objects.filter(user=user, **{field: parse_id(target_id)}).exists()
    return {"liked": liked}


def likes_for(target_type: str, target_id):
    """Likes on a target with their users, newest first."""
    field, target = _resolve_target(target_type, target_id)
    return BlogLike.objects.filter(**{field: target}).select_related("user").order_by("-created_at")


def sync_post(post_id) -> Dict[str, Any]:
    post = get_post(post_id)
    count = _count("post", post)
    BlogPost.objects.filter(pk=post.pk).update(likes_count=count)
    if count != post.likes_count:
        logger.warning(f"Post {post.pk} likes_count drifted: {post.likes_count} -> {count}")
    return {"count": count, "synced": True}


def sync_comment(comment_id) -> Dict[str, Any]:
    comment = get_comment(comment_id)
    count = _count("comment", comment)
    BlogComment.objects.filter(pk=comment.pk).update(likes_count=count)
    if count != comment.likes_count:
        logger.warning(f"Comment {comment.pk} likes_count drifted: {comment.likes_count} -> {count}")
    return {"count": count, "synced": True}


def _sync_model(model, field: str) -> int:
    actual = (
        BlogLike.objects.filter(**{field: OuterRef("pk")})
        .values(field)
        .annotate(total=Count("pk"))
        .values("total")
    )
    drifted = model.objects.annotate(actual=Coalesce(Subquery(actual), Value(0))).filter(
        ~Q(likes_count=F("actual"))
    )

    fixed = 0
    for obj in drifted:
        model.objects.filter(pk=obj.pk).update(likes_count=obj.actual)
        fixed += 1
    return fixed


def sync_all() -> Dict[str, int]:
    """Recompute every denormalized counter from the underlying rows."""
    result = {
        "posts_fixed": _sync_model(BlogPost, "post"),
        "comments_fixed": _sync_model(BlogComment, "comment"),
        "comment_counts_fixed": comment_service.sync_comments_counts(),
    }
    logger.info(f"Counter sync finished: {result}")
    return result
