from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError


class PostNotFound(NotFound):
    """Exception raised when a blog post is not found."""

    default_detail = "Blog post not found"
    default_code = "post_not_found"


class CommentNotFound(NotFound):
    """Exception raised when a blog comment is not found."""

    default_detail = "Comment not found"
    default_code = "comment_not_found"


class ParentCommentNotFound(CommentNotFound):
    default_detail = "Parent comment not found"
    default_code = "parent_comment_not_found"


class InvalidObjectId(ValidationError):
    """Exception raised when a path or body id is not a valid identifier."""

    default_detail = "Invalid ID"
    default_code = "invalid_id"


class UnauthorizedPostAccess(PermissionDenied):
    """Exception raised when user tries to view a post that is not public."""

    default_detail = "You don't have permission to access this post"
    default_code = "unauthorized_post_access"


class UnauthorizedPostEdit(PermissionDenied):
    """Exception raised when user tries to edit a post they don't own."""

    default_detail = "You can only update your own posts"
    default_code = "unauthorized_post_edit"


class UnauthorizedPostDelete(PermissionDenied):
    """Exception raised when user tries to delete a post they don't own."""

    default_detail = "You can only delete your own posts"
    default_code = "unauthorized_post_delete"


class UnauthorizedCommentEdit(PermissionDenied):
    """Exception raised when user tries to edit a comment they don't own."""

    default_detail = "You can only update your own comments"
    default_code = "unauthorized_comment_edit"


class UnauthorizedCommentDelete(PermissionDenied):
    """Exception raised when user tries to delete a comment they don't own."""

    default_detail = "You can only delete your own comments"
    default_code = "unauthorized_comment_delete"


class DeletedCommentEdit(PermissionDenied):
    default_detail = "Cannot update deleted comment"
    default_code = "deleted_comment_edit"


class ParentCommentMismatch(PermissionDenied):
    default_detail = "Parent comment does not belong to this blog post"
    default_code = "parent_comment_mismatch"


class InvalidPostStatus(ValidationError):
    """Exception raised when a transition is not allowed from the current status."""

    default_detail = "Invalid post status"
    default_code = "invalid_post_status"


class DraftIncomplete(ValidationError):
    """Exception raised when a draft is missing fields required for publishing."""

    default_detail = "Draft must have title, content, and excerpt before publishing"
    default_code = "draft_incomplete"


class InvalidLikeTarget(ValidationError):
    default_detail = "A valid target type and target id are required"
    default_code = "invalid_like_target"
