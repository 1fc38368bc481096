import math

from django.http import QueryDict
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated

from permissions.permissions import IsVerified

from .exceptions import WorkflowError
from .serializers import PostSerializer, PostCommentSerializer
from . import services

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def _request_payload(request):
    """Plain dict of the request body; form posts keep ``approvers`` as a list."""
    if isinstance(request.data, QueryDict):
        payload = request.data.dict()
        if "approvers" in request.data:
            payload["approvers"] = request.data.getlist("approvers")
        return payload
    return request.data


def _int_param(raw, default):
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


class WorkflowAPIView(APIView):
    """Base view turning workflow errors into ``{"error", "code"}`` responses."""
    permission_classes = [IsAuthenticated, IsVerified]

    def handle_exception(self, exc):
        if isinstance(exc, WorkflowError):
            return Response(
                {"error": exc.message, "code": exc.code},
                status=exc.status_code,
            )
        return super().handle_exception(exc)


class PostListCreateView(WorkflowAPIView):

    def get(self, request):
        page = max(1, _int_param(request.query_params.get('page'), 1))
        limit = min(MAX_PAGE_SIZE, max(1, _int_param(request.query_params.get('limit'), DEFAULT_PAGE_SIZE)))
        skip = (page - 1) * limit

        posts = services.list_posts(request.user, status=request.query_params.get('status'))
        total = posts.count()
        page_posts = posts[skip:skip + limit]

        return Response({
            "posts": PostSerializer(page_posts, many=True).data,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit),
                "has_more": page * limit < total,
            },
        })

    def post(self, request):
        post = services.create_post(request.user, _request_payload(request))
        return Response(PostSerializer(post).data, status=status.HTTP_201_CREATED)


class PendingPostsView(WorkflowAPIView):

    def get(self, request):
        posts = services.list_pending_for(request.user)
        return Response({
            "posts": PostSerializer(posts, many=True).data,
            "count": len(posts),
        })


class PostDetailView(WorkflowAPIView):

    def get(self, request, post_id):
        post = services.get_post_for(post_id, request.user)
        return Response(PostSerializer(post).data)

    def put(self, request, post_id):
        post = services.update_post(post_id, request.user, _request_payload(request))
        return Response(PostSerializer(post).data)

    def patch(self, request, post_id):
        return self.put(request, post_id)

    def delete(self, request, post_id):
        services.delete_post(post_id, request.user)
        return Response({"message": "Post deleted successfully."}, status=status.HTTP_200_OK)


class ApprovePostView(WorkflowAPIView):

    def post(self, request, post_id):
        post = services.approve_post(post_id, request.user, request.data.get('comment'))
        return Response(PostSerializer(post).data, status=status.HTTP_200_OK)


class RejectPostView(WorkflowAPIView):

    def post(self, request, post_id):
        post = services.reject_post(post_id, request.user, request.data.get('comment'))
        return Response(PostSerializer(post).data, status=status.HTTP_200_OK)


class PublishPostView(WorkflowAPIView):

    def post(self, request, post_id):
        post = services.publish_post(post_id, request.user)
        return Response(PostSerializer(post).data, status=status.HTTP_200_OK)


class PostCommentView(WorkflowAPIView):

    def post(self, request, post_id):
        comment = services.add_comment(post_id, request.user, request.data.get('comment'))
        return Response(PostCommentSerializer(comment).data, status=status.HTTP_201_CREATED)
