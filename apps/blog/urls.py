from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers

from .views import (
    BlogCommentViewSet,
    BlogLikeViewSet,
    BlogPostViewSet,
    PostCommentViewSet,
)

app_name = "blog"

router = DefaultRouter()
router.register("posts", BlogPostViewSet, basename="posts")
router.register("comments", BlogCommentViewSet, basename="comments")
router.register("likes", BlogLikeViewSet, basename="likes")

# Comment threads nested under their post
posts_router = routers.NestedDefaultRouter(router, "posts", lookup="post")
posts_router.register("comments", PostCommentViewSet, basename="post-comments")

urlpatterns = [
    path("", include(router.urls)),
    path("", include(posts_router.urls)),
]
