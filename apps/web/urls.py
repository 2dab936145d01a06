from django.contrib.auth.views import LogoutView
from django.urls import path

from . import views

app_name = "web"

urlpatterns = [
    path("", views.HomeView.as_view(), name="home"),
    path("search/", views.SearchView.as_view(), name="search"),
    path("dashboard/", views.DashboardView.as_view(), name="dashboard"),
    path("posts/new/", views.PostCreateView.as_view(), name="post-create"),
    path("posts/<uuid:pk>/", views.PostDetailView.as_view(), name="post-detail"),
    path("posts/<uuid:pk>/edit/", views.PostUpdateView.as_view(), name="post-edit"),
    path("posts/<uuid:pk>/delete/", views.PostDeleteView.as_view(), name="post-delete"),
    path("posts/<uuid:pk>/comments/", views.CommentCreateView.as_view(), name="comment-create"),
    path(
        "posts/<uuid:pk>/<slug:transition>/",
        views.PostTransitionView.as_view(),
        name="post-transition",
    ),
    path("comments/<uuid:pk>/delete/", views.CommentDeleteView.as_view(), name="comment-delete"),
    path(
        "likes/<str:target_type>/<uuid:pk>/",
        views.LikeToggleView.as_view(),
        name="like-toggle",
    ),
    path("login/", views.LoginView.as_view(), name="login"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("register/", views.RegisterView.as_view(), name="register"),
]
