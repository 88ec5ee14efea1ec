"""
API Resources

Adapters and schemas for the resources the API serves.
"""

from jsonapi_adapter.adapter import Adapter
from jsonapi_adapter.models import Comment, Post
from jsonapi_adapter.schema import ResourceSchema
from jsonapi_adapter.soft_deletes_models import SoftDeletesModels


class PostAdapter(SoftDeletesModels, Adapter):
    model = Post
    resource_type = "posts"


class CommentAdapter(Adapter):
    model = Comment
    resource_type = "comments"


RESOURCES = {
    "posts": (
        PostAdapter,
        ResourceSchema(
            "posts",
            ["title", "slug", "content", "published_at", "created_at", "updated_at", "deleted_at"],
        ),
    ),
    "comments": (
        CommentAdapter,
        ResourceSchema("comments", ["content", "post_id", "created_at", "updated_at"]),
    ),
}
