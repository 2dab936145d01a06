import uuid

from apps.blog.exceptions import CommentNotFound, InvalidObjectId, PostNotFound
from apps.blog.models import BlogComment, BlogPost


def parse_id(value, message="Invalid ID"):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise InvalidObjectId(message)


def is_valid_id(value) -> bool:
    try:
        parse_id(value)
    except InvalidObjectId:
        return False
    return True


def get_post(post_id, queryset=None, for_update=False) -> BlogPost:
    pk = parse_id(post_id, "Invalid blog post ID")
    queryset = queryset if queryset is not None else BlogPost.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=pk)
    except BlogPost.DoesNotExist:
        raise PostNotFound()


def get_comment(comment_id, queryset=None) -> BlogComment:
    pk = parse_id(comment_id, "Invalid comment ID")
    queryset = queryset if queryset is not None else BlogComment.objects.all()
    try:
        return queryset.get(pk=pk)
    except BlogComment.DoesNotExist:
        raise CommentNotFound()
