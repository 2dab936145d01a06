import django_filters
from django.db.models import Q

from .models import BlogPost


class BlogPostFilter(django_filters.FilterSet):
    """
    Filters for the post listing: status, author, tag names and date ranges.
    """

    status = django_filters.ChoiceFilter(choices=BlogPost.PostStatus.choices)
    author = django_filters.NumberFilter(field_name="author_id")
    title = django_filters.CharFilter(lookup_expr="icontains")
    tags = django_filters.CharFilter(method="filter_by_tags")
    created_at = django_filters.DateTimeFromToRangeFilter()
    published_at = django_filters.DateTimeFromToRangeFilter()

    class Meta:
        model = BlogPost
        fields = ["status", "author", "title", "tags", "created_at", "published_at"]

    def filter_by_tags(self, queryset, name, value):
        """Comma separated tag names; a post matches if it has any of them."""
        names = [tag.strip() for tag in value.split(",") if tag.strip()]
        if not names:
            return queryset

        query = Q()
        for tag_name in names:
            query |= Q(tags__name__iexact=tag_name)
        return queryset.filter(pk__in=BlogPost.objects.filter(query).values("pk"))
