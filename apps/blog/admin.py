from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import BlogAttachment, BlogComment, BlogLike, BlogPost, BlogTag
from .services import likes as like_service


class BlogAttachmentInline(admin.TabularInline):
    model = BlogAttachment
    extra = 0
    readonly_fields = ["url", "type", "original_name", "size", "mime_type", "uploaded_by", "created_at"]


@admin.register(BlogPost)
class BlogPostAdmin(admin.ModelAdmin):
    list_display = [
        "title",
        "author",
        "status",
        "is_draft",
        "views",
        "likes_count",
        "comments_count",
        "published_at",
        "scheduled_publish_at",
    ]
    list_filter = ["status", "is_draft", "created_at", "published_at"]
    search_fields = ["title", "excerpt", "content", "author__email"]
    readonly_fields = ["views", "likes_count", "comments_count", "created_at", "updated_at"]
    filter_horizontal = ["tags"]
    inlines = [BlogAttachmentInline]
    actions = ["resync_counters"]

    @admin.action(description=_("Resync like counters"))
    def resync_counters(self, request, queryset):
        for post in queryset:
            like_service.sync_post(post.pk)
        self.message_user(request, _("Counters resynced."))


@admin.register(BlogComment)
class BlogCommentAdmin(admin.ModelAdmin):
    list_display = ["id", "post", "author", "parent", "is_deleted", "likes_count", "created_at"]
    list_filter = ["is_deleted", "created_at"]
    search_fields = ["content", "author__email", "post__title"]
    raw_id_fields = ["post", "parent", "author"]


@admin.register(BlogLike)
class BlogLikeAdmin(admin.ModelAdmin):
    list_display = ["user", "target_type", "post", "comment", "created_at"]
    list_filter = ["target_type"]
    raw_id_fields = ["user", "post", "comment"]


@admin.register(BlogTag)
class BlogTagAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "created_at"]
    search_fields = ["name"]
    prepopulated_fields = {"slug": ("name",)}
