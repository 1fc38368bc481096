import logging

from django.db import transaction

from apps.notifications.models import NotificationType
from apps.notifications.services import notify_user

logger = logging.getLogger(__name__)


def _preview(caption, length=50):
    return f"{caption[:length]}{'...' if len(caption) > length else ''}"


def dispatch(description, func, *args, **kwargs):
    """
    Run a notification call, logging and absorbing any failure.

    Delivery is best effort: the approval state it reports on is already
    committed and must not depend on it.
    """
    try:
        func(*args, **kwargs)
    except Exception:
        logger.exception("Failed to send %s notification", description)


def dispatch_on_commit(description, func, *args, **kwargs):
    transaction.on_commit(lambda: dispatch(description, func, *args, **kwargs))


def notify_approval_request(post, approver_id, creator_name):
    return notify_user(
        user=approver_id,
        title="Post Approval Request",
        message=f'{creator_name} submitted a post for your approval: "{_preview(post.caption)}"',
        type=NotificationType.POST_APPROVAL_REQUEST,
        post=post,
    )


def notify_next_approver(post, approver_id, previous_approver_name):
    return notify_user(
        user=approver_id,
        title="Post Ready for Your Approval",
        message=f'{previous_approver_name} approved a post. Now it\'s your turn: "{_preview(post.caption)}"',
        type=NotificationType.POST_APPROVAL_REQUEST,
        post=post,
    )


def notify_post_approved(post, approver_name):
    if post.creator_id is None:
        return None
    return notify_user(
        user=post.creator_id,
        title="Post Approved",
        message=f'{approver_name} approved your post: "{_preview(post.caption)}"',
        type=NotificationType.POST_APPROVED,
        post=post,
    )


def notify_post_fully_approved(post):
    if post.creator_id is None:
        return None
    return notify_user(
        user=post.creator_id,
        title="Post Fully Approved",
        message=f'All approvers have approved your post: "{_preview(post.caption)}". It\'s ready to publish!',
        type=NotificationType.POST_FULLY_APPROVED,
        post=post,
    )


def notify_post_rejected(post, approver_name, reason):
    if post.creator_id is None:
        return None
    return notify_user(
        user=post.creator_id,
        title="Post Rejected",
        message=f'{approver_name} rejected your post: "{_preview(post.caption, 30)}". Reason: {reason}',
        type=NotificationType.POST_REJECTED,
        post=post,
    )
