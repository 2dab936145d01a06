from django.utils import timezone
from rest_framework import serializers

from apps.accounts.serializers import AuthorSerializer

from .models import BlogAttachment, BlogComment, BlogLike, BlogPost


class TagNamesField(serializers.ListField):
    """Tags are written and read as a list of names."""

    child = serializers.CharField(max_length=50)

    def to_representation(self, data):
        return [tag.name for tag in data.all()]


class BlogAttachmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = BlogAttachment
        fields = ["id", "url", "type", "original_name", "size", "mime_type", "created_at"]
        read_only_fields = fields


class BlogPostListSerializer(serializers.ModelSerializer):
    """Serializer for blog post lists."""

    author = AuthorSerializer(read_only=True)
    tags = TagNamesField(read_only=True)

    class Meta:
        model = BlogPost
        fields = [
            "id",
            "title",
            "excerpt",
            "author",
            "tags",
            "status",
            "is_draft",
            "views",
            "likes_count",
            "comments_count",
            "featured_image",
            "published_at",
            "last_saved_at",
            "scheduled_publish_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BlogPostDetailSerializer(BlogPostListSerializer):
    """Serializer for a single post with its content and attachments."""

    attachments = BlogAttachmentSerializer(many=True, read_only=True)
    can_edit = serializers.SerializerMethodField()

    class Meta(BlogPostListSerializer.Meta):
        fields = BlogPostListSerializer.Meta.fields + ["content", "attachments", "can_edit"]
        read_only_fields = fields

    def get_can_edit(self, obj):
        request = self.context.get("request")
        if not request:
            return False
        return obj.is_owned_by(request.user)


class BlogPostEngagementSerializer(BlogPostDetailSerializer):
    engagement = serializers.SerializerMethodField()

    class Meta(BlogPostDetailSerializer.Meta):
        fields = BlogPostDetailSerializer.Meta.fields + ["engagement"]
        read_only_fields = fields

    def get_engagement(self, obj):
        return {
            "likes": obj.likes_count,
            "comments": obj.comments_count,
            "views": obj.views,
        }


class BlogPostCreateUpdateSerializer(serializers.ModelSerializer):
    """Validates post input; persistence happens in the post service."""

    tags = serializers.ListField(
        child=serializers.CharField(max_length=50),
        required=False,
        max_length=20,
    )

    class Meta:
        model = BlogPost
        fields = [
            "title",
            "content",
            "excerpt",
            "tags",
            "status",
            "featured_image",
            "scheduled_publish_at",
        ]
        extra_kwargs = {
            "title": {"required": True, "allow_blank": False},
            "content": {"required": True, "allow_blank": False},
            "excerpt": {"required": True, "allow_blank": False},
            "featured_image": {"required": False},
            "scheduled_publish_at": {"required": False},
        }

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be blank.")
        return value

    def validate_tags(self, value):
        return [tag.strip() for tag in value if tag and tag.strip()]


class DraftSerializer(serializers.Serializer):
    """Draft input: every field optional and blanks allowed."""

    title = serializers.CharField(required=False, allow_blank=True, max_length=300)
    content = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    excerpt = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False, max_length=20)
    featured_image = serializers.CharField(required=False, allow_blank=True, max_length=500)


class PublishDraftSerializer(serializers.Serializer):
    scheduled_publish_at = serializers.DateTimeField(required=False, allow_null=True)
    publish_now = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        scheduled = attrs.get("scheduled_publish_at")
        if scheduled and not attrs.get("publish_now") and scheduled <= timezone.now():
            # a schedule in the past publishes straight away
            attrs["publish_now"] = True
        return attrs


class FileUploadSerializer(serializers.Serializer):
    file = serializers.FileField(required=True)


class BlogCommentSerializer(serializers.ModelSerializer):
    """Serializer for blog comments, nesting whatever replies the service attached."""

    author = AuthorSerializer(read_only=True)
    replies = serializers.SerializerMethodField()
    replies_count = serializers.SerializerMethodField()

    class Meta:
        model = BlogComment
        fields = [
            "id",
            "content",
            "post",
            "parent",
            "author",
            "is_deleted",
            "likes_count",
            "replies",
            "replies_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_replies(self, obj):
        replies = getattr(obj, "thread_replies", [])
        return BlogCommentSerializer(replies, many=True, context=self.context).data

    def get_replies_count(self, obj):
        return len(getattr(obj, "thread_replies", []))


class BlogCommentCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=5000)
    post = serializers.UUIDField(required=False)
    parent = serializers.UUIDField(required=False, allow_null=True)

    def validate_content(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Comment content is required")
        return value


class BlogCommentUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=5000)


class LikeToggleSerializer(serializers.Serializer):
    target_type = serializers.ChoiceField(choices=BlogLike.TargetType.choices)
    target_id = serializers.CharField(required=False, allow_blank=True)
    post = serializers.CharField(required=False, allow_blank=True)
    comment = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        # the target id may come as target_id or under the target type's own key
        attrs["target_id"] = attrs.get("target_id") or attrs.get(attrs["target_type"]) or ""
        return attrs


class LikeToggleResponseSerializer(serializers.Serializer):
    liked = serializers.BooleanField()
    count = serializers.IntegerField()
    message = serializers.CharField()


class BlogLikeSerializer(serializers.ModelSerializer):
    user = AuthorSerializer(read_only=True)

    class Meta:
        model = BlogLike
        fields = ["id", "user", "target_type", "post", "comment", "created_at"]
        read_only_fields = fields
