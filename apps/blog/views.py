import logging

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle

from apps.accounts.permissions import IsModerator
from apps.common.pagination import StandardResultsSetPagination
from apps.common.utils import parse_int

from .filters import BlogPostFilter
from .models import BlogComment, BlogPost
from .serializers import (
    BlogCommentCreateSerializer,
    BlogCommentSerializer,
    BlogCommentUpdateSerializer,
    BlogLikeSerializer,
    BlogPostCreateUpdateSerializer,
    BlogPostDetailSerializer,
    BlogPostEngagementSerializer,
    BlogPostListSerializer,
    DraftSerializer,
    FileUploadSerializer,
    LikeToggleResponseSerializer,
    LikeToggleSerializer,
    PublishDraftSerializer,
)
from .services import comments as comment_service
from .services import likes as like_service
from .services import posts as post_service
from .services.lookups import get_comment

logger = logging.getLogger(__name__)


class BlogThrottle(UserRateThrottle):
    """Custom throttle for blog operations."""

    scope = "blog"


@extend_schema_view(
    list=extend_schema(tags=["Blog Posts"], summary="List visible posts"),
    retrieve=extend_schema(tags=["Blog Posts"], summary="Get a post and count the view"),
    create=extend_schema(tags=["Blog Posts"], request=BlogPostCreateUpdateSerializer, responses={201: BlogPostDetailSerializer}),
    update=extend_schema(tags=["Blog Posts"], request=BlogPostCreateUpdateSerializer, responses={200: BlogPostDetailSerializer}),
    partial_update=extend_schema(tags=["Blog Posts"], request=BlogPostCreateUpdateSerializer, responses={200: BlogPostDetailSerializer}),
    destroy=extend_schema(tags=["Blog Posts"]),
)
class BlogPostViewSet(viewsets.ModelViewSet):
    """
    ViewSet for blog posts.

    Besides CRUD it exposes the draft workflow (create, auto-save, preview,
    publish or schedule, archive, restore), search, engagement counts and
    featured image / attachment management. Business rules live in
    ``apps.blog.services.posts``.
    """

    pagination_class = StandardResultsSetPagination
    throttle_classes = [BlogThrottle, AnonRateThrottle]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filter_backends = [DjangoFilterBackend]
    filterset_class = BlogPostFilter
    lookup_value_regex = "[^/]+"
    public_actions = ["list", "retrieve", "search", "engagement"]

    def get_queryset(self):
        if self.action == "list":
            return post_service.visible_posts(self.request.user)
        return BlogPost.objects.with_relations()

    def get_serializer_class(self):
        if self.action in ["list", "search", "my_posts", "drafts", "all_drafts", "scheduled"]:
            return BlogPostListSerializer
        elif self.action in ["create", "update", "partial_update"]:
            return BlogPostCreateUpdateSerializer
        elif self.action == "engagement":
            return BlogPostEngagementSerializer
        return BlogPostDetailSerializer

    def get_permissions(self):
        if self.action in self.public_actions:
            permission_classes = [permissions.AllowAny]
        elif self.action == "all_drafts":
            permission_classes = [permissions.IsAuthenticated, IsModerator]
        else:
            permission_classes = [permissions.IsAuthenticated]
        return [permission() for permission in permission_classes]

    def _detail(self, post, status_code=status.HTTP_200_OK):
        serializer = BlogPostDetailSerializer(post, context=self.get_serializer_context())
        return Response(serializer.data, status=status_code)

    def _paginated(self, queryset):
        page = self.paginate_queryset(queryset)
        serializer = BlogPostListSerializer(page, many=True, context=self.get_serializer_context())
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, *args, **kwargs):
        post = post_service.get_post_for_viewer(request.user, kwargs["pk"])
        return self._detail(post)

    def create(self, request, *args, **kwargs):
        serializer = BlogPostCreateUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        post = post_service.create_post(request.user, serializer.validated_data)
        return self._detail(post, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        serializer = BlogPostCreateUpdateSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        post = post_service.update_post(request.user, kwargs["pk"], serializer.validated_data)
        return self._detail(post)

    def destroy(self, request, *args, **kwargs):
        post_service.delete_post(request.user, kwargs["pk"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Blog Posts"],
        parameters=[
            OpenApiParameter("q", str, description="Text matched against title, excerpt, content and tags"),
            OpenApiParameter("tags", str, description="Comma separated tag names"),
        ],
        responses={200: BlogPostListSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def search(self, request):
        tags = [tag for tag in request.query_params.get("tags", "").split(",") if tag.strip()]
        queryset = post_service.search_posts(request.query_params.get("q", ""), tags)
        return self._paginated(queryset)

    @extend_schema(tags=["Blog Posts"], responses={200: BlogPostListSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="my-posts")
    def my_posts(self, request):
        return self._paginated(self.filter_queryset(post_service.my_posts(request.user)))

    @extend_schema(tags=["Blog Posts"], request=DraftSerializer, responses={200: BlogPostListSerializer(many=True), 201: BlogPostDetailSerializer})
    @action(detail=False, methods=["get", "post"])
    def drafts(self, request):
        """List the caller's drafts, or start a new one."""
        if request.method == "POST":
            serializer = DraftSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            post = post_service.create_draft(request.user, serializer.validated_data)
            return self._detail(post, status.HTTP_201_CREATED)

        return self._paginated(post_service.my_drafts(request.user))

    @extend_schema(tags=["Blog Posts"], responses={200: BlogPostListSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="drafts/all", url_name="drafts-all")
    def all_drafts(self, request):
        return self._paginated(post_service.all_drafts())

    @extend_schema(tags=["Blog Posts"], responses={200: BlogPostListSerializer(many=True)})
    @action(detail=False, methods=["get"])
    def scheduled(self, request):
        """Drafts whose scheduled publish time has passed."""
        return self._paginated(post_service.scheduled_posts(request.user))

    @extend_schema(tags=["Blog Posts"], responses={200: BlogPostEngagementSerializer})
    @action(detail=True, methods=["get"])
    def engagement(self, request, pk=None):
        post = post_service.get_post_for_viewer(request.user, pk, count_view=False)
        serializer = BlogPostEngagementSerializer(post, context=self.get_serializer_context())
        return Response(serializer.data)

    @extend_schema(tags=["Blog Posts"], responses={200: BlogPostDetailSerializer})
    @action(detail=True, methods=["get"])
    def preview(self, request, pk=None):
        return self._detail(post_service.preview_draft(request.user, pk))

    @extend_schema(tags=["Blog Posts"], request=DraftSerializer, responses={200: BlogPostDetailSerializer})
    @action(detail=True, methods=["patch"], url_path="auto-save")
    def auto_save(self, request, pk=None):
        serializer = DraftSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        return self._detail(post_service.auto_save(request.user, pk, serializer.validated_data))

    @extend_schema(tags=["Blog Posts"], request=PublishDraftSerializer, responses={200: BlogPostDetailSerializer})
    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):
        serializer = PublishDraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        post = post_service.publish_draft(
            request.user,
            pk,
            scheduled_publish_at=serializer.validated_data.get("scheduled_publish_at"),
            publish_now=serializer.validated_data["publish_now"],
        )
        return self._detail(post)

    @extend_schema(tags=["Blog Posts"], request=None, responses={200: BlogPostDetailSerializer})
    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        return self._detail(post_service.archive_post(request.user, pk))

    @extend_schema(tags=["Blog Posts"], request=None, responses={200: BlogPostDetailSerializer})
    @action(detail=True, methods=["post"])
    def restore(self, request, pk=None):
        return self._detail(post_service.restore_post(request.user, pk))

    @extend_schema(tags=["Blog Posts"], request=None, responses={200: BlogPostDetailSerializer})
    @action(detail=True, methods=["post"], url_path="publish-scheduled")
    def publish_scheduled(self, request, pk=None):
        return self._detail(post_service.publish_scheduled(request.user, pk))

    @extend_schema(tags=["Blog Posts"], request={"multipart/form-data": FileUploadSerializer}, responses={200: BlogPostDetailSerializer})
    @action(detail=True, methods=["post", "delete"], url_path="featured-image")
    def featured_image(self, request, pk=None):
        if request.method == "DELETE":
            return self._detail(post_service.remove_featured_image(request.user, pk))

        post = post_service.set_featured_image(request.user, pk, request.FILES.get("file"))
        return self._detail(post)

    @extend_schema(
        tags=["Blog Posts"],
        request={"multipart/form-data": FileUploadSerializer},
        parameters=[OpenApiParameter("url", str, description="Attachment URL to remove (DELETE only)")],
        responses={200: BlogPostDetailSerializer},
    )
    @action(detail=True, methods=["post", "delete"])
    def attachments(self, request, pk=None):
        if request.method == "DELETE":
            url = request.query_params.get("url", "")
            return self._detail(post_service.remove_attachment(request.user, pk, url))

        post = post_service.add_attachment(request.user, pk, request.FILES.get("file"))
        return self._detail(post)


def _comment_page_params(request):
    page = parse_int(request.query_params.get("page"), 1)
    limit = parse_int(request.query_params.get("limit"), 10, maximum=100)
    return page, limit


@extend_schema_view(
    list=extend_schema(tags=["Blog Comments"], summary="Comment tree of a post"),
    create=extend_schema(tags=["Blog Comments"], request=BlogCommentCreateSerializer, responses={201: BlogCommentSerializer}),
)
class PostCommentViewSet(viewsets.GenericViewSet):
    """Comments nested under ``posts/{post_pk}/comments/``."""

    serializer_class = BlogCommentSerializer
    throttle_classes = [BlogThrottle, AnonRateThrottle]
    queryset = BlogComment.objects.none()

    def get_permissions(self):
        if self.action == "list":
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def list(self, request, post_pk=None):
        page, limit = _comment_page_params(request)
        comments, total = comment_service.comment_tree(post_pk, page, limit)
        serializer = BlogCommentSerializer(comments, many=True, context=self.get_serializer_context())
        return Response({"comments": serializer.data, "total": total, "page": page, "limit": limit})

    def create(self, request, post_pk=None):
        serializer = BlogCommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        comment = comment_service.create_comment(
            request.user,
            post_pk,
            serializer.validated_data["content"],
            serializer.validated_data.get("parent"),
        )
        return Response(
            BlogCommentSerializer(comment, context=self.get_serializer_context()).data,
            status=status.HTTP_201_CREATED,
        )


@extend_schema_view(
    create=extend_schema(tags=["Blog Comments"], request=BlogCommentCreateSerializer, responses={201: BlogCommentSerializer}),
    retrieve=extend_schema(tags=["Blog Comments"]),
    partial_update=extend_schema(tags=["Blog Comments"], request=BlogCommentUpdateSerializer),
    destroy=extend_schema(tags=["Blog Comments"], summary="Soft delete a comment"),
)
class BlogCommentViewSet(
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = BlogCommentSerializer
    throttle_classes = [BlogThrottle, AnonRateThrottle]
    queryset = BlogComment.objects.select_related("author")
    lookup_value_regex = "[^/]+"
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):
        if self.action in ["retrieve", "replies"]:
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def get_object(self):
        return get_comment(self.kwargs["pk"], queryset=self.get_queryset())

    def create(self, request, *args, **kwargs):
        serializer = BlogCommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        post_id = serializer.validated_data.get("post")
        if not post_id:
            raise ValidationError({"post": ["This field is required."]})

        comment = comment_service.create_comment(
            request.user,
            post_id,
            serializer.validated_data["content"],
            serializer.validated_data.get("parent"),
        )
        return Response(
            BlogCommentSerializer(comment, context=self.get_serializer_context()).data,
            status=status.HTTP_201_CREATED,
        )

    def partial_update(self, request, *args, **kwargs):
        serializer = BlogCommentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        comment = comment_service.update_comment(request.user, kwargs["pk"], serializer.validated_data["content"])
        return Response(BlogCommentSerializer(comment, context=self.get_serializer_context()).data)

    def destroy(self, request, *args, **kwargs):
        comment_service.delete_comment(request.user, kwargs["pk"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Blog Comments"], responses={200: BlogCommentSerializer(many=True)})
    @action(detail=True, methods=["get"])
    def replies(self, request, pk=None):
        replies = comment_service.replies(pk)
        serializer = BlogCommentSerializer(replies, many=True, context=self.get_serializer_context())
        return Response(serializer.data)


class BlogLikeViewSet(viewsets.ViewSet):
    """
    Like toggling and counter reconciliation for posts and comments.
    """

    throttle_classes = [BlogThrottle, AnonRateThrottle]

    def get_permissions(self):
        if self.action in ["post_likes", "comment_likes"]:
            return [permissions.AllowAny()]
        if self.action == "sync_all":
            return [permissions.IsAuthenticated(), IsModerator()]
        return [permissions.IsAuthenticated()]

    def _likes_response(self, target_type, target_id):
        likes = like_service.likes_for(target_type, target_id)
        serializer = BlogLikeSerializer(likes, many=True, context={"request": self.request})
        return Response({"likes": serializer.data, "count": len(serializer.data)})

    @extend_schema(tags=["Blog Likes"], request=LikeToggleSerializer, responses={200: LikeToggleResponseSerializer})
    @action(detail=False, methods=["post"])
    def toggle(self, request):
        serializer = LikeToggleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = like_service.toggle_like(
            request.user,
            serializer.validated_data["target_type"],
            serializer.validated_data["target_id"],
        )
        return Response(result)

    @extend_schema(
        tags=["Blog Likes"],
        parameters=[OpenApiParameter("target_type", str), OpenApiParameter("target_id", str)],
    )
    @action(detail=False, methods=["get"], url_path="status", url_name="status")
    def like_status(self, request):
        result = like_service.like_status(
            request.user,
            request.query_params.get("target_type", ""),
            request.query_params.get("target_id", ""),
        )
        return Response(result)

    @extend_schema(tags=["Blog Likes"])
    @action(detail=False, methods=["get"], url_path=r"post/(?P<post_id>[^/]+)", url_name="post")
    def post_likes(self, request, post_id=None):
        return self._likes_response("post", post_id)

    @extend_schema(tags=["Blog Likes"])
    @action(detail=False, methods=["get"], url_path=r"comment/(?P<comment_id>[^/]+)", url_name="comment")
    def comment_likes(self, request, comment_id=None):
        return self._likes_response("comment", comment_id)

    @extend_schema(tags=["Blog Likes"], request=None)
    @action(detail=False, methods=["post"], url_path=r"sync/post/(?P<post_id>[^/]+)", url_name="sync-post")
    def sync_post(self, request, post_id=None):
        return Response(like_service.sync_post(post_id))

    @extend_schema(tags=["Blog Likes"], request=None)
    @action(detail=False, methods=["post"], url_path=r"sync/comment/(?P<comment_id>[^/]+)", url_name="sync-comment")
    def sync_comment(self, request, comment_id=None):
        return Response(like_service.sync_comment(comment_id))

    @extend_schema(tags=["Blog Likes"], request=None)
    @action(detail=False, methods=["post"], url_path="sync/all", url_name="sync-all")
    def sync_all(self, request):
        logger.info(f"Full counter sync requested by user {request.user.pk}")
        return Response(like_service.sync_all())
