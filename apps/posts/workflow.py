"""
State machine for the sequential post approval workflow.

Post and approval statuses are closed enumerations with explicit transition
tables. Whose turn it is to decide is never stored: it is recomputed from the
full, order-sorted list of a post's approvals every time it is needed.

The helpers below accept any objects exposing ``order``, ``status`` and
``approver_id``, so they work on model instances as well as plain records.
"""
from django.db import models

from .exceptions import ConflictError


class PostStatus(models.TextChoices):
    PENDING_APPROVAL = "PENDING_APPROVAL", "Pending approval"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"
    PUBLISHED = "PUBLISHED", "Published"


class ApprovalStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"


POST_TRANSITIONS = {
    PostStatus.PENDING_APPROVAL: frozenset({PostStatus.APPROVED, PostStatus.REJECTED}),
    # APPROVED -> PUBLISHED is driven from outside the approval sequence
    PostStatus.APPROVED: frozenset({PostStatus.PUBLISHED}),
    PostStatus.REJECTED: frozenset(),
    PostStatus.PUBLISHED: frozenset(),
}

APPROVAL_TRANSITIONS = {
    ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.APPROVED: frozenset(),
    ApprovalStatus.REJECTED: frozenset(),
}

# Statuses in which the post content can no longer be edited.
LOCKED_POST_STATUSES = frozenset({PostStatus.APPROVED, PostStatus.PUBLISHED})


def can_transition(table, current, target):
    return target in table.get(current, frozenset())


def ensure_post_transition(current, target):
    if not can_transition(POST_TRANSITIONS, current, target):
        raise ConflictError(f"cannot move post from {current} to {target}")


def ensure_approval_transition(current, target):
    if not can_transition(APPROVAL_TRANSITIONS, current, target):
        raise ConflictError("already processed")


def find_approval_for(approvals, user_id):
    for approval in approvals:
        if approval.approver_id == user_id:
            return approval
    return None


def is_current_turn(approval, approvals):
    """
    True when ``approval`` is pending and every approval ordered before it on
    the same post has been approved.
    """
    if approval is None or approval.status != ApprovalStatus.PENDING:
        return False
    return all(
        other.status == ApprovalStatus.APPROVED
        for other in approvals
        if other.order < approval.order
    )


def current_approval(approvals):
    """Return the approval whose turn it is, or None once the sequence is settled."""
    for approval in sorted(approvals, key=lambda a: a.order):
        if approval.status == ApprovalStatus.APPROVED:
            continue
        # The first non-approved record decides: either it is pending and
        # holds the turn, or it was rejected and nobody after it ever will.
        return approval if approval.status == ApprovalStatus.PENDING else None
    return None


def next_approval(approval, approvals):
    """The approval immediately after ``approval`` in the sequence, if any."""
    later = [other for other in approvals if other.order > approval.order]
    return min(later, key=lambda a: a.order) if later else None


def is_final(approval, approvals):
    return next_approval(approval, approvals) is None
