"""
Operations of the post approval workflow.

Every state change runs inside a transaction that locks the post row, so
concurrent decisions on the same post are serialised and the turn predicate
is evaluated against the same snapshot that is written. Approval rows are
written with a conditional update on ``status=PENDING`` as a second guard.

Notifications are scheduled with ``transaction.on_commit`` and never affect
the outcome of the operation that triggered them.
"""
import logging
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.accounts.models import User
from apps.campaigns.models import Program, Campaign

from . import notifications, workflow
from .exceptions import ValidationError, NotFoundError, ForbiddenError, ConflictError
from .models import Post, Approval, PostComment
from .workflow import PostStatus, ApprovalStatus

logger = logging.getLogger(__name__)

BUDGET_QUANTUM = Decimal("0.01")
# Post.budget is DecimalField(max_digits=12, decimal_places=2)
BUDGET_LIMIT = Decimal("1e10")


# Input parsing

def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_datetime(value, label):
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        try:
            parsed = parse_datetime(text)
            if parsed is None:
                parsed_date = parse_date(text)
                parsed = datetime.combine(parsed_date, time.min) if parsed_date else None
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError(f"invalid {label}")

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _parse_budget(value):
    if _is_blank(value):
        return None
    try:
        budget = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError("invalid budget")
    if not budget.is_finite():
        raise ValidationError("invalid budget")
    if budget < 0:
        raise ValidationError("budget must be non-negative")
    try:
        budget = budget.quantize(BUDGET_QUANTUM)
    except InvalidOperation:
        raise ValidationError("invalid budget")
    if budget >= BUDGET_LIMIT:
        raise ValidationError("invalid budget")
    return budget


def _parse_approver_ids(raw_ids):
    try:
        return [int(approver_id) for approver_id in raw_ids]
    except (TypeError, ValueError):
        raise ValidationError("invalid approver id")


def _resolve_reference(model, raw_id, label):
    if _is_blank(raw_id):
        return None
    try:
        return model.objects.get(pk=int(raw_id))
    except (TypeError, ValueError, model.DoesNotExist):
        raise ValidationError(f"unknown {label}")


# Queries

def post_queryset():
    """Posts with creator, references, ordered approvals and comments loaded."""
    return Post.objects.select_related("creator", "program", "campaign").prefetch_related(
        Prefetch(
            "approvals",
            queryset=Approval.objects.select_related("approver").order_by("order"),
        ),
        Prefetch(
            "comments",
            queryset=PostComment.objects.select_related("author"),
        ),
    )


def get_post(post_id):
    try:
        return post_queryset().get(pk=post_id)
    except (Post.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("post not found")


def get_post_for(post_id, user):
    """A post as seen by ``user``: administrators, its creator and its approvers."""
    post = get_post(post_id)
    if user.is_administrator or post.creator_id == user.pk:
        return post
    if workflow.find_approval_for(post.approvals.all(), user.pk) is None:
        raise ForbiddenError("You do not have permission to view this post")
    return post


def list_posts(user, status=None):
    queryset = post_queryset()

    if status and status != "ALL":
        if status not in PostStatus.values:
            raise ValidationError(f"unknown status {status}")
        queryset = queryset.filter(status=status)

    # Non-admin users only see their own posts
    if not user.is_administrator:
        queryset = queryset.filter(creator=user)

    return queryset.order_by("-created_at", "-id")


def list_pending_for(user):
    """
    Posts on which it is currently ``user``'s turn to decide, newest first.

    The database narrows the candidates to pending posts where the user holds
    a pending approval; the turn predicate needs the sibling approvals and is
    applied in memory.
    """
    candidates = (
        post_queryset()
        .filter(
            status=PostStatus.PENDING_APPROVAL,
            approvals__approver=user,
            approvals__status=ApprovalStatus.PENDING,
        )
        .distinct()
        .order_by("-created_at", "-id")
    )

    pending = []
    for post in candidates:
        approvals = list(post.approvals.all())
        if workflow.is_current_turn(workflow.find_approval_for(approvals, user.pk), approvals):
            pending.append(post)
    return pending


# Creation

def create_post(creator, data):
    """
    Create a post in PENDING_APPROVAL with one pending approval per approver.

    ``data["approvers"]`` is the ordered list of approver ids; position in the
    list becomes the approval order, starting at 1. Only the first approver is
    notified.
    """
    caption = data.get("caption")
    start_raw = data.get("start_date")
    end_raw = data.get("end_date")
    if _is_blank(caption) or _is_blank(start_raw) or _is_blank(end_raw):
        raise ValidationError("required fields missing")

    raw_approvers = data.get("approvers")
    if not raw_approvers or not isinstance(raw_approvers, (list, tuple)):
        raise ValidationError("at least one approver required")

    start_date = _parse_datetime(start_raw, "start date")
    end_date = _parse_datetime(end_raw, "end date")
    if end_date < start_date:
        raise ValidationError("end date before start date")

    approver_ids = _parse_approver_ids(raw_approvers)
    if len(set(approver_ids)) != len(approver_ids):
        raise ValidationError("duplicate approvers")
    known = set(User.objects.filter(pk__in=approver_ids, is_active=True).values_list("pk", flat=True))
    if known != set(approver_ids):
        raise ValidationError("unknown approvers")

    budget = _parse_budget(data.get("budget"))
    program = _resolve_reference(Program, data.get("program_id"), "program")
    campaign = _resolve_reference(Campaign, data.get("campaign_id"), "campaign")

    with transaction.atomic():
        post = Post.objects.create(
            caption=str(caption).strip(),
            image_url=data.get("image_url") or None,
            budget=budget,
            start_date=start_date,
            end_date=end_date,
            status=PostStatus.PENDING_APPROVAL,
            program=program,
            campaign=campaign,
            creator=creator,
        )
        Approval.objects.bulk_create([
            Approval(post=post, approver_id=approver_id, order=order, status=ApprovalStatus.PENDING)
            for order, approver_id in enumerate(approver_ids, start=1)
        ])

        notifications.dispatch_on_commit(
            "approval request",
            notifications.notify_approval_request,
            post,
            approver_ids[0],
            creator.display_name,
        )

    logger.info("Post %s created by user %s with %s approvers", post.pk, creator.pk, len(approver_ids))
    return get_post(post.pk)


# Decisions

def _lock_post(post_id):
    try:
        return Post.objects.select_for_update().get(pk=post_id)
    except (Post.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("post not found")


def _lock_for_decision(post_id, actor):
    """
    Lock the post and check that ``actor`` may decide on it now.

    Returns the post, its approvals in order and the actor's approval.
    """
    post = _lock_post(post_id)
    approvals = list(Approval.objects.filter(post=post).order_by("order"))

    approval = workflow.find_approval_for(approvals, actor.pk)
    if approval is None:
        raise ForbiddenError("not an approver")
    if approval.status != ApprovalStatus.PENDING:
        raise ConflictError("already processed")
    if not workflow.is_current_turn(approval, approvals):
        raise ConflictError("not your turn")
    if post.status != PostStatus.PENDING_APPROVAL:
        raise ConflictError("post is not awaiting approval")

    return post, approvals, approval


def _record_decision(approval, target, comment):
    workflow.ensure_approval_transition(approval.status, target)
    decided_at = timezone.now()
    updated = Approval.objects.filter(pk=approval.pk, status=ApprovalStatus.PENDING).update(
        status=target, comment=comment, decided_at=decided_at
    )
    if updated != 1:
        raise ConflictError("already processed")
    approval.status = target
    approval.comment = comment
    approval.decided_at = decided_at


def _set_post_status(post, target):
    workflow.ensure_post_transition(post.status, target)
    updated = Post.objects.filter(pk=post.pk, status=post.status).update(
        status=target, updated_at=timezone.now()
    )
    if updated != 1:
        raise ConflictError("post status changed concurrently")
    post.status = target


def approve_post(post_id, actor, comment=None):
    """
    Record ``actor``'s approval. The last approver in the sequence moves the
    post to APPROVED; otherwise the next approver is told it is their turn.
    """
    comment = comment.strip() if isinstance(comment, str) else None
    comment = comment or None

    with transaction.atomic():
        post, approvals, approval = _lock_for_decision(post_id, actor)
        _record_decision(approval, ApprovalStatus.APPROVED, comment)

        following = workflow.next_approval(approval, approvals)
        if following is None:
            _set_post_status(post, PostStatus.APPROVED)
            notifications.dispatch_on_commit(
                "full approval", notifications.notify_post_fully_approved, post
            )
        else:
            actor_name = actor.display_name
            notifications.dispatch_on_commit(
                "approval progress", notifications.notify_post_approved, post, actor_name
            )
            notifications.dispatch_on_commit(
                "next approver",
                notifications.notify_next_approver,
                post,
                following.approver_id,
                actor_name,
            )

    logger.info(
        "Post %s approved at order %s by user %s (post status %s)",
        post.pk, approval.order, actor.pk, post.status,
    )
    return get_post(post.pk)


def reject_post(post_id, actor, comment):
    """
    Record ``actor``'s rejection. Any rejection ends the workflow: the post
    moves to REJECTED and later approvers are never consulted.
    """
    if not isinstance(comment, str) or not comment.strip():
        raise ValidationError("rejection comment required")
    comment = comment.strip()

    with transaction.atomic():
        post, approvals, approval = _lock_for_decision(post_id, actor)
        _record_decision(approval, ApprovalStatus.REJECTED, comment)
        _set_post_status(post, PostStatus.REJECTED)

        notifications.dispatch_on_commit(
            "rejection",
            notifications.notify_post_rejected,
            post,
            actor.display_name,
            comment,
        )

    logger.info("Post %s rejected at order %s by user %s", post.pk, approval.order, actor.pk)
    return get_post(post.pk)


# Mutation outside the approval sequence

def update_post(post_id, actor, data):
    """
    Edit post content. Only the creator may edit, and only while the post is
    neither approved nor published. Approvers and their order are fixed.
    """
    with transaction.atomic():
        post = _lock_post(post_id)

        if post.creator_id != actor.pk:
            raise ForbiddenError("You do not have permission to update this post")
        if post.is_locked:
            raise ConflictError("Cannot update an approved or published post")

        changed = []

        if "caption" in data:
            if _is_blank(data["caption"]):
                raise ValidationError("caption cannot be empty")
            post.caption = str(data["caption"]).strip()
            changed.append("caption")

        if "image_url" in data:
            post.image_url = data["image_url"] or None
            changed.append("image_url")

        if "budget" in data:
            post.budget = _parse_budget(data["budget"])
            changed.append("budget")

        if "start_date" in data:
            if _is_blank(data["start_date"]):
                raise ValidationError("start date cannot be empty")
            post.start_date = _parse_datetime(data["start_date"], "start date")
            changed.append("start_date")

        if "end_date" in data:
            if _is_blank(data["end_date"]):
                raise ValidationError("end date cannot be empty")
            post.end_date = _parse_datetime(data["end_date"], "end date")
            changed.append("end_date")

        if post.end_date < post.start_date:
            raise ValidationError("end date before start date")

        if "program_id" in data:
            post.program = _resolve_reference(Program, data["program_id"], "program")
            changed.append("program")

        if "campaign_id" in data:
            post.campaign = _resolve_reference(Campaign, data["campaign_id"], "campaign")
            changed.append("campaign")

        if changed:
            post.save(update_fields=changed + ["updated_at"])

    logger.info("Post %s updated by user %s: %s", post.pk, actor.pk, ", ".join(changed) or "no changes")
    return get_post(post.pk)


def delete_post(post_id, actor):
    with transaction.atomic():
        post = _lock_post(post_id)

        if post.creator_id != actor.pk and not actor.is_administrator:
            raise ForbiddenError("You do not have permission to delete this post")
        if post.status == PostStatus.PUBLISHED:
            raise ConflictError("Cannot delete a published post")

        post.delete()

    logger.info("Post %s deleted by user %s", post_id, actor.pk)


def publish_post(post_id, actor):
    """Move a fully approved post to PUBLISHED."""
    with transaction.atomic():
        post = _lock_post(post_id)

        if post.creator_id != actor.pk and not actor.is_administrator:
            raise ForbiddenError("You do not have permission to publish this post")
        _set_post_status(post, PostStatus.PUBLISHED)

    logger.info("Post %s published by user %s", post.pk, actor.pk)
    return get_post(post.pk)


# Discussion

def add_comment(post_id, author, comment):
    if not isinstance(comment, str) or not comment.strip():
        raise ValidationError("Comment cannot be empty")
    if not Post.objects.filter(pk=post_id).exists():
        raise NotFoundError("post not found")

    return PostComment.objects.create(post_id=post_id, author=author, comment=comment.strip())
