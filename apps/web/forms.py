from django import forms
from django.contrib.auth.forms import AuthenticationForm
from django.utils.translation import gettext_lazy as _

from apps.blog.models import BlogPost


class PostForm(forms.Form):
    title = forms.CharField(max_length=300)
    excerpt = forms.CharField(max_length=1000, required=False, widget=forms.Textarea(attrs={"rows": 2}))
    content = forms.CharField(widget=forms.Textarea(attrs={"rows": 14}))
    tags = forms.CharField(
        required=False,
        help_text=_("Comma separated"),
    )
    status = forms.ChoiceField(choices=BlogPost.PostStatus.choices, initial=BlogPost.PostStatus.DRAFT)
    featured_image = forms.FileField(
        required=False,
        widget=forms.ClearableFileInput(attrs={"accept": "image/*"}),
    )

    def clean_tags(self):
        return [tag.strip() for tag in self.cleaned_data["tags"].split(",") if tag.strip()]

    def service_data(self):
        """Cleaned values in the shape the post service expects."""
        return {key: self.cleaned_data[key] for key in ("title", "excerpt", "content", "tags", "status")}


class CommentForm(forms.Form):
    content = forms.CharField(max_length=5000, widget=forms.Textarea(attrs={"rows": 3}))
    parent_id = forms.UUIDField(required=False, widget=forms.HiddenInput)


class SearchForm(forms.Form):
    q = forms.CharField(required=False, label=_("Search"))
    tags = forms.CharField(required=False, help_text=_("Comma separated"))

    def tag_list(self):
        if not self.is_valid():
            return []
        return [tag.strip() for tag in self.cleaned_data["tags"].split(",") if tag.strip()]


class EmailAuthenticationForm(AuthenticationForm):
    username = forms.EmailField(label=_("Email"), widget=forms.EmailInput(attrs={"autofocus": True}))

    def clean_username(self):
        return self.cleaned_data["username"].strip().lower()
