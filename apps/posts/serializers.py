from rest_framework import serializers

from apps.accounts.serializers import UserSummarySerializer
from apps.campaigns.serializers import ProgramSerializer, CampaignSerializer

from .models import Post, Approval, PostComment
from . import workflow


class ApprovalSerializer(serializers.ModelSerializer):
    approver = UserSummarySerializer(read_only=True)

    class Meta:
        model = Approval
        fields = ['id', 'approver', 'order', 'status', 'comment', 'decided_at']
        read_only_fields = fields


class PostCommentSerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)

    class Meta:
        model = PostComment
        fields = ['id', 'author', 'comment', 'created_at']
        read_only_fields = fields


class PostSerializer(serializers.ModelSerializer):
    creator = UserSummarySerializer(read_only=True)
    program = ProgramSerializer(read_only=True)
    campaign = CampaignSerializer(read_only=True)
    approvals = ApprovalSerializer(many=True, read_only=True)
    comments = PostCommentSerializer(many=True, read_only=True)
    current_approver_order = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = [
            'id', 'caption', 'image_url', 'budget', 'start_date', 'end_date', 'status',
            'program', 'campaign', 'creator', 'approvals', 'current_approver_order',
            'comments', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_current_approver_order(self, obj):
        """Order of the approval whose turn it is, derived from the approval list."""
        approval = workflow.current_approval(obj.approvals.all())
        return approval.order if approval else None
