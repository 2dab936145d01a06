import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import Count, F, OuterRef, Q, Subquery, Value
from django.db.models.functions import Coalesce
from rest_framework.exceptions import ValidationError

from apps.blog.exceptions import (
    CommentNotFound,
    DeletedCommentEdit,
    ParentCommentMismatch,
    ParentCommentNotFound,
    UnauthorizedCommentDelete,
    UnauthorizedCommentEdit,
)
from apps.blog.models import BlogComment, BlogPost

from .lookups import get_comment, get_post, is_valid_id, parse_id

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")


def max_depth() -> int:
    return getattr(settings, "BLOG_COMMENT_MAX_DEPTH", 50)


def _children_by_parent(post_id) -> Dict:
    """Map parent id -> active replies (oldest first) for one post."""
    replies = (
        BlogComment.objects.active()
        .filter(post_id=post_id, parent__isnull=False)
        .select_related("author")
        .order_by("created_at")
    )
    children = defaultdict(list)
    for reply in replies:
        children[reply.parent_id].append(reply)
    return children


def _attach_replies(comments: List[BlogComment], children: Dict, depth: int = 0, seen=None):
    """
    Set ``thread_replies`` on every comment from the parent map. Comments
    already placed in the tree are not visited again and nesting stops at
    the configured depth.
    """
    seen = set() if seen is None else seen
    for comment in comments:
        seen.add(comment.pk)
        if depth >= max_depth():
            comment.thread_replies = []
            continue
        nested = [reply for reply in children.get(comment.pk, []) if reply.pk not in seen]
        comment.thread_replies = nested
        _attach_replies(nested, children, depth + 1, seen)
    return comments


def comment_tree(post_id, page: int = 1, limit: int = 10) -> Tuple[List[BlogComment], int]:
    """
    Top-level comments of a post, newest first, each carrying its active
    replies in ``thread_replies``. Deleted comments hide their subtree.
    Unknown or malformed post ids produce an empty page.
    """
    if not is_valid_id(post_id):
        return [], 0

    post_pk = parse_id(post_id)
    top_level = (
        BlogComment.objects.active()
        .top_level()
        .filter(post_id=post_pk)
        .select_related("author")
        .order_by("-created_at")
    )
    total = top_level.count()

    page = max(page, 1)
    offset = (page - 1) * limit
    roots = list(top_level[offset:offset + limit])
    if not roots:
        return [], total

    return _attach_replies(roots, _children_by_parent(post_pk)), total


def replies(comment_id) -> List[BlogComment]:
    """Active replies of a comment, nested."""
    comment = get_comment(comment_id)
    _attach_replies([comment], _children_by_parent(comment.post_id))
    return comment.thread_replies


@transaction.atomic
def create_comment(user, post_id, content: str, parent_id=None) -> BlogComment:
    content = (content or "").strip()
    if not content:
        raise ValidationError({"content": ["Comment content is required"]})

    post = get_post(post_id)

    parent: Optional[BlogComment] = None
    if parent_id:
        try:
            parent = get_comment(parent_id)
        except CommentNotFound:
            raise ParentCommentNotFound()
        if parent.post_id != post.pk:
            raise ParentCommentMismatch()

    comment = BlogComment.objects.create(post=post, author=user, parent=parent, content=content)
    BlogPost.objects.filter(pk=post.pk).update(comments_count=F("comments_count") + 1)

    logger.info(f"Comment {comment.pk} added to post {post.pk} by user {user.pk}")
    return comment


@transaction.atomic
def update_comment(user, comment_id, content: str) -> BlogComment:
    comment = get_comment(comment_id, queryset=BlogComment.objects.select_for_update())
    if not comment.is_owned_by(user):
        security_logger.warning(f"User {user.pk} denied edit on comment {comment.pk}")
        raise UnauthorizedCommentEdit()
    if comment.is_deleted:
        raise DeletedCommentEdit()

    content = (content or "").strip()
    if not content:
        raise ValidationError({"content": ["Comment content is required"]})

    comment.content = content
    comment.save(update_fields=["content", "updated_at"])
    return comment


@transaction.atomic
def delete_comment(user, comment_id) -> BlogComment:
    """Soft delete a comment and decrement the post's comment counter."""
    comment = get_comment(comment_id, queryset=BlogComment.objects.select_for_update())
    if comment.is_deleted:
        raise CommentNotFound()
    if not (comment.is_owned_by(user) or user.is_moderator):
        security_logger.warning(f"User {user.pk} denied delete on comment {comment.pk}")
        raise UnauthorizedCommentDelete()

    comment.soft_delete()
    BlogPost.objects.filter(pk=comment.post_id, comments_count__gt=0).update(
        comments_count=F("comments_count") - 1
    )

    logger.info(f"Comment {comment.pk} soft-deleted by user {user.pk}")
    return comment


def sync_comments_counts() -> int:
    """Recompute ``comments_count`` for every post; returns how many were wrong."""
    actual = (
        BlogComment.objects.active()
        .filter(post=OuterRef("pk"))
        .values("post")
        .annotate(total=Count("pk"))
        .values("total")
    )
    drifted = BlogPost.objects.annotate(
        actual=Coalesce(Subquery(actual), Value(0))
    ).filter(~Q(comments_count=F("actual")))

    fixed = 0
    for post in drifted:
        BlogPost.objects.filter(pk=post.pk).update(comments_count=post.actual)
        fixed += 1

    if fixed:
        logger.warning(f"Repaired comments_count on {fixed} posts")
    return fixed
