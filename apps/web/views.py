import logging

from django.contrib import messages
from django.contrib.auth import login
from django.contrib.auth.mixins import LoginRequiredMixin
from django.contrib.auth.views import LoginView as BaseLoginView
from django.db import transaction
from django.core.exceptions import PermissionDenied
from django.http import Http404, JsonResponse
from django.shortcuts import redirect
from django.urls import reverse, reverse_lazy
from django.utils.http import url_has_allowed_host_and_scheme
from django.views import View
from django.views.generic import FormView, ListView, TemplateView
from rest_framework.exceptions import APIException, NotFound
from rest_framework.exceptions import PermissionDenied as APIPermissionDenied

from apps.accounts.forms import EmailUserCreationForm
from apps.blog.exceptions import InvalidObjectId
from apps.blog.models import BlogLike, BlogPost
from apps.blog.services import comments as comment_service
from apps.blog.services import likes as like_service
from apps.blog.services import posts as post_service
from apps.blog.services.lookups import get_post

from .forms import CommentForm, EmailAuthenticationForm, PostForm, SearchForm

logger = logging.getLogger(__name__)

COMMENTS_PER_PAGE = 50


def error_text(exc: APIException) -> str:
    """Flatten a DRF exception detail into one readable line."""
    detail = exc.detail
    if isinstance(detail, dict):
        parts = []
        for field, errors in detail.items():
            errors = errors if isinstance(errors, list) else [errors]
            parts.append(f"{field}: {' '.join(str(error) for error in errors)}")
        return "; ".join(parts)
    if isinstance(detail, list):
        return " ".join(str(error) for error in detail)
    return str(detail)


def next_url(request, default: str) -> str:
    target = request.POST.get("next", "")
    if target and url_has_allowed_host_and_scheme(target, allowed_hosts={request.get_host()}):
        return target
    return default


def raise_for_page(exc: APIException):
    """Re-raise service errors that should become 404 or 403 pages."""
    if isinstance(exc, (NotFound, InvalidObjectId)):
        raise Http404(error_text(exc))
    if isinstance(exc, APIPermissionDenied):
        raise PermissionDenied(error_text(exc))


class HomeView(ListView):
    """Published posts, newest first."""

    template_name = "web/home.html"
    context_object_name = "posts"
    paginate_by = 10

    def get_queryset(self):
        return BlogPost.objects.published().with_relations().order_by("-published_at", "-created_at")


class SearchView(ListView):
    template_name = "web/search.html"
    context_object_name = "posts"
    paginate_by = 10

    def get_queryset(self):
        self.form = SearchForm(self.request.GET or None)
        if not self.request.GET:
            return BlogPost.objects.none()
        query = self.form.cleaned_data.get("q", "") if self.form.is_valid() else ""
        return post_service.search_posts(query, self.form.tag_list())

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["form"] = self.form
        query = self.request.GET.copy()
        query.pop("page", None)
        context["search_query"] = query.urlencode()
        return context


class PostDetailView(TemplateView):
    template_name = "web/post_detail.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        user = self.request.user

        try:
            post = post_service.get_post_for_viewer(user, kwargs["pk"])
        except APIException as exc:
            raise_for_page(exc)
            raise

        comments, total = comment_service.comment_tree(post.pk, 1, COMMENTS_PER_PAGE)

        context.update(
            {
                "post": post,
                "engagement": post_service.engagement(post),
                "comments": comments,
                "comments_total": total,
                "comment_form": CommentForm(),
                "liked": (
                    user.is_authenticated
                    and like_service.like_status(user, BlogLike.TargetType.POST, post.pk)["liked"]
                ),
                "can_edit": post.is_owned_by(user),
            }
        )
        return context


class PostFormMixin(LoginRequiredMixin):
    form_class = PostForm
    template_name = "web/post_form.html"

    def attach_featured_image(self, post, form):
        upload = form.cleaned_data.get("featured_image")
        if upload:
            post_service.set_featured_image(self.request.user, post.pk, upload)


class PostCreateView(PostFormMixin, FormView):
    def form_valid(self, form):
        try:
            with transaction.atomic():
                post = post_service.create_post(self.request.user, form.service_data())
                self.attach_featured_image(post, form)
        except APIException as exc:
            raise_for_page(exc)
            form.add_error(None, error_text(exc))
            return self.form_invalid(form)

        messages.success(self.request, "Post created.")
        return redirect(post.get_absolute_url())


class PostUpdateView(PostFormMixin, FormView):
    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated:
            return self.handle_no_permission()
        try:
            self.post_obj = get_post(kwargs["pk"])
        except APIException as exc:
            raise_for_page(exc)
            raise
        if not self.post_obj.is_owned_by(request.user):
            raise PermissionDenied("You can only update your own posts")
        return super().dispatch(request, *args, **kwargs)

    def get_initial(self):
        post = self.post_obj
        return {
            "title": post.title,
            "excerpt": post.excerpt,
            "content": post.content,
            "tags": ", ".join(tag.name for tag in post.tags.all()),
            "status": post.status,
        }

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["post"] = self.post_obj
        return context

    def form_valid(self, form):
        try:
            with transaction.atomic():
                post = post_service.update_post(self.request.user, self.post_obj.pk, form.service_data())
                self.attach_featured_image(post, form)
        except APIException as exc:
            raise_for_page(exc)
            form.add_error(None, error_text(exc))
            return self.form_invalid(form)

        messages.success(self.request, "Post updated.")
        return redirect(post.get_absolute_url())


class PostDeleteView(LoginRequiredMixin, View):
    def post(self, request, pk):
        try:
            post_service.delete_post(request.user, pk)
        except APIException as exc:
            raise_for_page(exc)
            raise
        messages.success(request, "Post deleted.")
        return redirect("web:dashboard")


class PostTransitionView(LoginRequiredMixin, View):
    """Publish, archive or restore a post from the dashboard."""

    transitions = {
        "publish": post_service.publish_draft,
        "archive": post_service.archive_post,
        "restore": post_service.restore_post,
    }
    success_messages = {
        "publish": "Post published.",
        "archive": "Post archived.",
        "restore": "Post restored to drafts.",
    }

    def post(self, request, pk, transition):
        handler = self.transitions.get(transition)
        if handler is None:
            raise Http404("Unknown transition")

        try:
            handler(request.user, pk)
        except APIException as exc:
            raise_for_page(exc)
            messages.error(request, error_text(exc))
        else:
            messages.success(request, self.success_messages[transition])

        return redirect(next_url(request, reverse("web:dashboard")))


class DashboardView(LoginRequiredMixin, TemplateView):
    template_name = "web/dashboard.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        user = self.request.user
        context["posts"] = post_service.my_posts(user).exclude(status=BlogPost.PostStatus.DRAFT)
        context["drafts"] = post_service.my_drafts(user)
        return context


class CommentCreateView(LoginRequiredMixin, View):
    def post(self, request, pk):
        form = CommentForm(request.POST)
        if not form.is_valid():
            messages.error(request, "Comment text is required.")
            return redirect("web:post-detail", pk=pk)

        try:
            comment_service.create_comment(
                request.user,
                pk,
                form.cleaned_data["content"],
                form.cleaned_data.get("parent_id"),
            )
        except APIException as exc:
            raise_for_page(exc)
            messages.error(request, error_text(exc))

        return redirect("web:post-detail", pk=pk)


class CommentDeleteView(LoginRequiredMixin, View):
    def post(self, request, pk):
        try:
            comment = comment_service.delete_comment(request.user, pk)
        except APIException as exc:
            raise_for_page(exc)
            raise
        messages.success(request, "Comment deleted.")
        return redirect("web:post-detail", pk=comment.post_id)


class LikeToggleView(LoginRequiredMixin, View):
    """Toggle a like; answers JSON for fetch requests, redirects otherwise."""

    def post(self, request, target_type, pk):
        try:
            result = like_service.toggle_like(request.user, target_type, pk)
        except APIException as exc:
            raise_for_page(exc)
            raise

        if request.headers.get("Accept") == "application/json":
            return JsonResponse(result)

        return redirect(next_url(request, reverse("web:home")))


class LoginView(BaseLoginView):
    template_name = "web/login.html"
    authentication_form = EmailAuthenticationForm
    redirect_authenticated_user = True


class RegisterView(FormView):
    template_name = "web/register.html"
    form_class = EmailUserCreationForm
    success_url = reverse_lazy("web:dashboard")

    def form_valid(self, form):
        user = form.save()
        login(self.request, user, backend="django.contrib.auth.backends.ModelBackend")
        logger.info(f"User {user.pk} registered through the web form")
        messages.success(self.request, "Welcome aboard!")
        return super().form_valid(form)
