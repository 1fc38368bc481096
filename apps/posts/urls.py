from django.urls import path

from .views import (
    PostListCreateView,
    PendingPostsView,
    PostDetailView,
    ApprovePostView,
    RejectPostView,
    PublishPostView,
    PostCommentView,
)

urlpatterns = [
    path('posts/', PostListCreateView.as_view(), name='post-list'),
    path('posts/pending/', PendingPostsView.as_view(), name='post-pending'),
    path('posts/<int:post_id>/', PostDetailView.as_view(), name='post-detail'),
    path('posts/<int:post_id>/approve/', ApprovePostView.as_view(), name='post-approve'),
    path('posts/<int:post_id>/reject/', RejectPostView.as_view(), name='post-reject'),
    path('posts/<int:post_id>/publish/', PublishPostView.as_view(), name='post-publish'),
    path('posts/<int:post_id>/comments/', PostCommentView.as_view(), name='post-comments'),
]
