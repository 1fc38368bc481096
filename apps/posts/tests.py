from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

from django.test import TestCase, SimpleTestCase
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework import status

from apps.accounts.models import UserRole
from apps.campaigns.models import Program, Campaign
from apps.notifications.models import Notification, NotificationType
from apps.posts import services, workflow
from apps.posts.exceptions import ValidationError, NotFoundError, ForbiddenError, ConflictError
from apps.posts.models import Post, Approval, PostComment
from apps.posts.workflow import PostStatus, ApprovalStatus

User = get_user_model()


def _record(order, status, approver_id=None):
    return SimpleNamespace(order=order, status=status, approver_id=approver_id or order)


class WorkflowTestCase(SimpleTestCase):
    """Test cases for the transition tables and turn predicate"""

    def test_post_transitions(self):
        self.assertTrue(workflow.can_transition(workflow.POST_TRANSITIONS, PostStatus.PENDING_APPROVAL, PostStatus.APPROVED))
        self.assertTrue(workflow.can_transition(workflow.POST_TRANSITIONS, PostStatus.PENDING_APPROVAL, PostStatus.REJECTED))
        self.assertTrue(workflow.can_transition(workflow.POST_TRANSITIONS, PostStatus.APPROVED, PostStatus.PUBLISHED))
        self.assertFalse(workflow.can_transition(workflow.POST_TRANSITIONS, PostStatus.REJECTED, PostStatus.APPROVED))
        self.assertFalse(workflow.can_transition(workflow.POST_TRANSITIONS, PostStatus.PUBLISHED, PostStatus.PENDING_APPROVAL))
        self.assertFalse(workflow.can_transition(workflow.POST_TRANSITIONS, PostStatus.PENDING_APPROVAL, PostStatus.PUBLISHED))

    def test_decided_approvals_are_terminal(self):
        with self.assertRaises(ConflictError):
            workflow.ensure_approval_transition(ApprovalStatus.APPROVED, ApprovalStatus.REJECTED)
        with self.assertRaises(ConflictError):
            workflow.ensure_approval_transition(ApprovalStatus.REJECTED, ApprovalStatus.APPROVED)
        workflow.ensure_approval_transition(ApprovalStatus.PENDING, ApprovalStatus.APPROVED)

    def test_first_pending_holds_turn(self):
        approvals = [
            _record(1, ApprovalStatus.PENDING),
            _record(2, ApprovalStatus.PENDING),
            _record(3, ApprovalStatus.PENDING),
        ]
        self.assertTrue(workflow.is_current_turn(approvals[0], approvals))
        self.assertFalse(workflow.is_current_turn(approvals[1], approvals))
        self.assertFalse(workflow.is_current_turn(approvals[2], approvals))
        self.assertIs(workflow.current_approval(approvals), approvals[0])

    def test_turn_advances_after_approval(self):
        approvals = [
            _record(1, ApprovalStatus.APPROVED),
            _record(2, ApprovalStatus.PENDING),
            _record(3, ApprovalStatus.PENDING),
        ]
        self.assertFalse(workflow.is_current_turn(approvals[0], approvals))
        self.assertTrue(workflow.is_current_turn(approvals[1], approvals))
        self.assertFalse(workflow.is_current_turn(approvals[2], approvals))

    def test_nobody_holds_turn_after_rejection(self):
        approvals = [
            _record(1, ApprovalStatus.APPROVED),
            _record(2, ApprovalStatus.REJECTED),
            _record(3, ApprovalStatus.PENDING),
        ]
        self.assertFalse(any(workflow.is_current_turn(a, approvals) for a in approvals))
        self.assertIsNone(workflow.current_approval(approvals))

    def test_at_most_one_turn_holder(self):
        statuses = [ApprovalStatus.PENDING, ApprovalStatus.APPROVED, ApprovalStatus.REJECTED]
        for first in statuses:
            for second in statuses:
                for third in statuses:
                    approvals = [_record(1, first), _record(2, second), _record(3, third)]
                    holders = [a for a in approvals if workflow.is_current_turn(a, approvals)]
                    self.assertLessEqual(len(holders), 1)

    def test_unsorted_input(self):
        approvals = [
            _record(3, ApprovalStatus.PENDING),
            _record(1, ApprovalStatus.APPROVED),
            _record(2, ApprovalStatus.PENDING),
        ]
        self.assertEqual(workflow.current_approval(approvals).order, 2)
        self.assertEqual(workflow.next_approval(approvals[2], approvals).order, 3)
        self.assertTrue(workflow.is_final(approvals[0], approvals))

    def test_find_approval_for(self):
        approvals = [_record(1, ApprovalStatus.PENDING, 10), _record(2, ApprovalStatus.PENDING, 20)]
        self.assertEqual(workflow.find_approval_for(approvals, 20).order, 2)
        self.assertIsNone(workflow.find_approval_for(approvals, 30))


class PostTestMixin:
    """Shared fixtures for workflow tests"""

    def setUp(self):
        self.creator = User.objects.create_user(
            email="creator@example.com", password="testpass123", first_name="Cara", last_name="Creator"
        )
        self.approver1 = User.objects.create_user(
            email="first@example.com", password="testpass123", first_name="Ada", last_name="First"
        )
        self.approver2 = User.objects.create_user(
            email="second@example.com", password="testpass123", first_name="Ben", last_name="Second"
        )
        self.approver3 = User.objects.create_user(
            email="third@example.com", password="testpass123", first_name="Cy", last_name="Third"
        )
        self.outsider = User.objects.create_user(email="outsider@example.com", password="testpass123")
        self.admin = User.objects.create_user(
            email="admin@example.com", password="testpass123", role=UserRole.ADMINISTRATOR
        )
        self.start = timezone.now() + timedelta(days=1)
        self.end = self.start + timedelta(days=7)

    def post_data(self, **overrides):
        data = {
            "caption": "Open day at the downtown campus",
            "start_date": self.start.isoformat(),
            "end_date": self.end.isoformat(),
            "approvers": [self.approver1.id, self.approver2.id],
        }
        data.update(overrides)
        return data

    def create_post(self, approvers=None, **overrides):
        if approvers is not None:
            overrides["approvers"] = [a.id for a in approvers]
        return services.create_post(self.creator, self.post_data(**overrides))

    def statuses(self, post):
        return list(Approval.objects.filter(post=post).order_by("order").values_list("status", flat=True))


class CreatePostTestCase(PostTestMixin, TestCase):
    """Test cases for post creation and its validation order"""

    def test_create_post(self):
        program = Program.objects.create(name="MBA")
        campaign = Campaign.objects.create(name="Fall Intake", program=program)
        post = self.create_post(
            approvers=[self.approver2, self.approver1],
            budget="150.5",
            program_id=program.id,
            campaign_id=campaign.id,
            image_url="https://cdn.example.com/open-day.png",
        )

        self.assertEqual(post.status, PostStatus.PENDING_APPROVAL)
        self.assertEqual(post.creator, self.creator)
        self.assertEqual(post.budget, Decimal("150.50"))
        self.assertEqual(post.program, program)
        self.assertEqual(post.campaign, campaign)

        approvals = list(post.approvals.all())
        self.assertEqual([a.order for a in approvals], [1, 2])
        self.assertEqual([a.approver_id for a in approvals], [self.approver2.id, self.approver1.id])
        self.assertTrue(all(a.status == ApprovalStatus.PENDING for a in approvals))

    def test_caption_is_trimmed(self):
        post = self.create_post(caption="  Spring fair  ")
        self.assertEqual(post.caption, "Spring fair")

    def test_date_only_values_accepted(self):
        post = self.create_post(start_date="2030-03-01", end_date="2030-03-01")
        self.assertEqual(post.start_date, post.end_date)

    def test_missing_fields_reported_first(self):
        with self.assertRaisesMessage(ValidationError, "required fields missing"):
            self.create_post(caption="   ", approvers=[])
        with self.assertRaisesMessage(ValidationError, "required fields missing"):
            services.create_post(self.creator, {"caption": "x", "approvers": [self.approver1.id]})

    def test_approvers_required(self):
        with self.assertRaisesMessage(ValidationError, "at least one approver required"):
            self.create_post(approvers=[], end_date=(self.start - timedelta(days=1)).isoformat())

    def test_end_before_start(self):
        with self.assertRaisesMessage(ValidationError, "end date before start date"):
            self.create_post(end_date=(self.start - timedelta(days=1)).isoformat())

    def test_duplicate_approvers(self):
        with self.assertRaisesMessage(ValidationError, "duplicate approvers"):
            self.create_post(approvers=[self.approver1, self.approver1])

    def test_unknown_approver_id(self):
        with self.assertRaisesMessage(ValidationError, "unknown approvers"):
            services.create_post(self.creator, self.post_data(approvers=[self.approver1.id, 999999]))
        self.assertEqual(Post.objects.count(), 0)
        self.assertEqual(Approval.objects.count(), 0)

    def test_inactive_approver_is_unknown(self):
        self.approver2.is_active = False
        self.approver2.save()
        with self.assertRaisesMessage(ValidationError, "unknown approvers"):
            self.create_post()

    def test_negative_budget(self):
        with self.assertRaisesMessage(ValidationError, "budget must be non-negative"):
            self.create_post(budget="-1")

    def test_oversized_budget(self):
        for budget in ("1e30", "99999999999", "9999999999.999"):
            with self.assertRaisesMessage(ValidationError, "invalid budget"):
                self.create_post(budget=budget)
        self.assertEqual(Post.objects.count(), 0)
        self.assertEqual(Approval.objects.count(), 0)

    def test_largest_budget_accepted(self):
        post = self.create_post(budget="9999999999.99")
        self.assertEqual(post.budget, Decimal("9999999999.99"))

    def test_unknown_program(self):
        with self.assertRaisesMessage(ValidationError, "unknown program"):
            self.create_post(program_id=424242)

    def test_invalid_date(self):
        with self.assertRaisesMessage(ValidationError, "invalid start date"):
            self.create_post(start_date="next tuesday")

    def test_first_approver_notified(self):
        with self.captureOnCommitCallbacks(execute=True):
            post = self.create_post()

        notifications = Notification.objects.all()
        self.assertEqual(notifications.count(), 1)
        notification = notifications[0]
        self.assertEqual(notification.recipient, self.approver1)
        self.assertEqual(notification.type, NotificationType.POST_APPROVAL_REQUEST)
        self.assertEqual(notification.title, "Post Approval Request")
        self.assertEqual(notification.post, post)
        self.assertIn("Cara Creator", notification.message)

    def test_failed_validation_sends_nothing(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(ValidationError):
                self.create_post(approvers=[self.approver1, self.approver1])
        self.assertEqual(len(callbacks), 0)
        self.assertEqual(Notification.objects.count(), 0)


class ApprovalSequenceTestCase(PostTestMixin, TestCase):
    """Test cases for the sequential approve and reject operations"""

    def test_two_approvers_in_turn(self):
        post = self.create_post()

        post = services.approve_post(post.id, self.approver1, "Looks good")
        self.assertEqual(post.status, PostStatus.PENDING_APPROVAL)
        self.assertEqual(self.statuses(post), [ApprovalStatus.APPROVED, ApprovalStatus.PENDING])
        first = post.approvals.all()[0]
        self.assertEqual(first.comment, "Looks good")
        self.assertIsNotNone(first.decided_at)

        post = services.approve_post(post.id, self.approver2)
        self.assertEqual(post.status, PostStatus.APPROVED)
        self.assertEqual(self.statuses(post), [ApprovalStatus.APPROVED, ApprovalStatus.APPROVED])

    def test_out_of_turn_approval_refused(self):
        post = self.create_post()

        with self.assertRaisesMessage(ConflictError, "not your turn"):
            services.approve_post(post.id, self.approver2)

        post.refresh_from_db()
        self.assertEqual(post.status, PostStatus.PENDING_APPROVAL)
        self.assertEqual(self.statuses(post), [ApprovalStatus.PENDING, ApprovalStatus.PENDING])

    def test_out_of_turn_rejection_refused(self):
        post = self.create_post()

        with self.assertRaisesMessage(ConflictError, "not your turn"):
            services.reject_post(post.id, self.approver2, "Wrong audience")

        post.refresh_from_db()
        self.assertEqual(post.status, PostStatus.PENDING_APPROVAL)
        self.assertEqual(self.statuses(post), [ApprovalStatus.PENDING, ApprovalStatus.PENDING])

    def test_approval_decided_concurrently(self):
        post = self.create_post()
        lock_for_decision = services._lock_for_decision

        def decided_elsewhere(post_id, actor):
            locked = lock_for_decision(post_id, actor)
            Approval.objects.filter(pk=locked[2].pk).update(status=ApprovalStatus.REJECTED)
            return locked

        with mock.patch.object(services, "_lock_for_decision", side_effect=decided_elsewhere):
            with self.assertRaisesMessage(ConflictError, "already processed"):
                services.approve_post(post.id, self.approver1)

        post.refresh_from_db()
        self.assertEqual(post.status, PostStatus.PENDING_APPROVAL)
        self.assertEqual(self.statuses(post), [ApprovalStatus.PENDING, ApprovalStatus.PENDING])

    def test_post_status_changed_concurrently(self):
        post = self.create_post(approvers=[self.approver1])
        lock_for_decision = services._lock_for_decision

        def rejected_elsewhere(post_id, actor):
            locked = lock_for_decision(post_id, actor)
            Post.objects.filter(pk=post_id).update(status=PostStatus.REJECTED)
            return locked

        with mock.patch.object(services, "_lock_for_decision", side_effect=rejected_elsewhere):
            with self.assertRaisesMessage(ConflictError, "post status changed concurrently"):
                services.approve_post(post.id, self.approver1)

        post.refresh_from_db()
        self.assertEqual(post.status, PostStatus.PENDING_APPROVAL)
        self.assertEqual(self.statuses(post), [ApprovalStatus.PENDING])

    def test_rejection_stops_sequence(self):
        post = self.create_post(approvers=[self.approver1, self.approver2, self.approver3])
        services.approve_post(post.id, self.approver1)

        post = services.reject_post(post.id, self.approver2, "Budget too high")
        self.assertEqual(post.status, PostStatus.REJECTED)
        self.assertEqual(
            self.statuses(post),
            [ApprovalStatus.APPROVED, ApprovalStatus.REJECTED, ApprovalStatus.PENDING],
        )

        with self.assertRaisesMessage(ConflictError, "not your turn"):
            services.approve_post(post.id, self.approver3)

        self.assertEqual(services.list_pending_for(self.approver3), [])

    def test_rejection_requires_comment(self):
        post = self.create_post()

        for comment in (None, "", "   "):
            with self.assertRaisesMessage(ValidationError, "rejection comment required"):
                services.reject_post(post.id, self.approver1, comment)

        post.refresh_from_db()
        self.assertEqual(post.status, PostStatus.PENDING_APPROVAL)
        self.assertEqual(self.statuses(post), [ApprovalStatus.PENDING, ApprovalStatus.PENDING])

    def test_comment_check_precedes_lookup(self):
        with self.assertRaisesMessage(ValidationError, "rejection comment required"):
            services.reject_post(999999, self.approver1, " ")

    def test_repeated_approval_conflicts(self):
        post = self.create_post()
        services.approve_post(post.id, self.approver1)

        with self.assertRaisesMessage(ConflictError, "already processed"):
            services.approve_post(post.id, self.approver1)
        with self.assertRaisesMessage(ConflictError, "already processed"):
            services.reject_post(post.id, self.approver1, "Changed my mind")

        self.assertEqual(self.statuses(post), [ApprovalStatus.APPROVED, ApprovalStatus.PENDING])

    def test_non_approver_forbidden(self):
        post = self.create_post()
        with self.assertRaisesMessage(ForbiddenError, "not an approver"):
            services.approve_post(post.id, self.outsider)
        with self.assertRaisesMessage(ForbiddenError, "not an approver"):
            services.approve_post(post.id, self.creator)

    def test_missing_post(self):
        with self.assertRaises(NotFoundError):
            services.approve_post(999999, self.approver1)
        with self.assertRaises(NotFoundError):
            services.reject_post(999999, self.approver1, "No")

    def test_forbidden_checked_before_conflict(self):
        post = self.create_post()
        services.reject_post(post.id, self.approver1, "Wrong campus")
        with self.assertRaisesMessage(ForbiddenError, "not an approver"):
            services.approve_post(post.id, self.outsider)

    def test_single_approver(self):
        post = self.create_post(approvers=[self.approver1])
        post = services.approve_post(post.id, self.approver1)
        self.assertEqual(post.status, PostStatus.APPROVED)

    def test_blank_approval_comment_stored_as_null(self):
        post = self.create_post()
        services.approve_post(post.id, self.approver1, "   ")
        self.assertIsNone(Approval.objects.get(post=post, order=1).comment)


class ApprovalNotificationTestCase(PostTestMixin, TestCase):
    """Test cases for notifications produced by workflow decisions"""

    def test_intermediate_approval_notifies_creator_and_next(self):
        post = self.create_post()
        with self.captureOnCommitCallbacks(execute=True):
            services.approve_post(post.id, self.approver1)

        creator_notes = Notification.objects.filter(recipient=self.creator)
        self.assertEqual(creator_notes.count(), 1)
        self.assertEqual(creator_notes[0].type, NotificationType.POST_APPROVED)
        self.assertIn("Ada First", creator_notes[0].message)

        next_notes = Notification.objects.filter(recipient=self.approver2)
        self.assertEqual(next_notes.count(), 1)
        self.assertEqual(next_notes[0].type, NotificationType.POST_APPROVAL_REQUEST)
        self.assertEqual(next_notes[0].title, "Post Ready for Your Approval")

    def test_final_approval_notifies_creator_only(self):
        post = self.create_post(approvers=[self.approver1])
        with self.captureOnCommitCallbacks(execute=True):
            services.approve_post(post.id, self.approver1)

        self.assertEqual(Notification.objects.count(), 1)
        notification = Notification.objects.get()
        self.assertEqual(notification.recipient, self.creator)
        self.assertEqual(notification.type, NotificationType.POST_FULLY_APPROVED)

    def test_rejection_notifies_creator_with_reason(self):
        post = self.create_post(approvers=[self.approver1, self.approver2, self.approver3])
        with self.captureOnCommitCallbacks(execute=True):
            services.reject_post(post.id, self.approver1, "Wrong campus")

        self.assertEqual(Notification.objects.count(), 1)
        notification = Notification.objects.get()
        self.assertEqual(notification.recipient, self.creator)
        self.assertEqual(notification.type, NotificationType.POST_REJECTED)
        self.assertIn("Reason: Wrong campus", notification.message)
        self.assertFalse(Notification.objects.filter(recipient__in=[self.approver2, self.approver3]).exists())

    def test_conflict_sends_nothing(self):
        post = self.create_post()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(ConflictError):
                services.approve_post(post.id, self.approver2)
        self.assertEqual(len(callbacks), 0)

    def test_delivery_failure_does_not_undo_decision(self):
        post = self.create_post()
        with mock.patch("apps.posts.notifications.notify_user", side_effect=RuntimeError("channel layer down")):
            with self.assertLogs("apps.posts.notifications", level="ERROR"):
                with self.captureOnCommitCallbacks(execute=True):
                    result = services.approve_post(post.id, self.approver1)

        self.assertEqual(result.status, PostStatus.PENDING_APPROVAL)
        self.assertEqual(self.statuses(post), [ApprovalStatus.APPROVED, ApprovalStatus.PENDING])
        self.assertEqual(Notification.objects.count(), 0)

    def test_creator_removed(self):
        post = self.create_post(approvers=[self.approver1])
        Post.objects.filter(pk=post.pk).update(creator=None)
        with self.captureOnCommitCallbacks(execute=True):
            result = services.approve_post(post.id, self.approver1)
        self.assertEqual(result.status, PostStatus.APPROVED)
        self.assertEqual(Notification.objects.count(), 0)


class PendingPostsTestCase(PostTestMixin, TestCase):
    """Test cases for the pending-for-me query"""

    def test_pending_follows_turn(self):
        post = self.create_post()
        self.assertEqual(services.list_pending_for(self.approver1), [post])
        self.assertEqual(services.list_pending_for(self.approver2), [])

        services.approve_post(post.id, self.approver1)
        self.assertEqual(services.list_pending_for(self.approver1), [])
        self.assertEqual([p.id for p in services.list_pending_for(self.approver2)], [post.id])

        services.approve_post(post.id, self.approver2)
        self.assertEqual(services.list_pending_for(self.approver2), [])

    def test_pending_newest_first(self):
        older = self.create_post(approvers=[self.approver1])
        newer = self.create_post(approvers=[self.approver1])
        self.assertEqual([p.id for p in services.list_pending_for(self.approver1)], [newer.id, older.id])

    def test_outsider_has_nothing_pending(self):
        self.create_post()
        self.assertEqual(services.list_pending_for(self.outsider), [])


class PostMutationTestCase(PostTestMixin, TestCase):
    """Test cases for update, delete, publish and comments"""

    def test_creator_updates_pending_post(self):
        post = self.create_post()
        post = services.update_post(post.id, self.creator, {"caption": "Updated", "budget": "20"})
        self.assertEqual(post.caption, "Updated")
        self.assertEqual(post.budget, Decimal("20.00"))
        self.assertEqual(self.statuses(post), [ApprovalStatus.PENDING, ApprovalStatus.PENDING])

    def test_update_requires_creator(self):
        post = self.create_post()
        with self.assertRaises(ForbiddenError):
            services.update_post(post.id, self.approver1, {"caption": "Hijacked"})

    def test_update_locked_post(self):
        post = self.create_post(approvers=[self.approver1])
        services.approve_post(post.id, self.approver1)
        with self.assertRaisesMessage(ConflictError, "Cannot update an approved or published post"):
            services.update_post(post.id, self.creator, {"caption": "Too late"})

    def test_update_keeps_date_order(self):
        post = self.create_post()
        with self.assertRaisesMessage(ValidationError, "end date before start date"):
            services.update_post(post.id, self.creator, {"end_date": (self.start - timedelta(days=2)).isoformat()})

    def test_update_oversized_budget(self):
        post = self.create_post(budget="10")
        with self.assertRaisesMessage(ValidationError, "invalid budget"):
            services.update_post(post.id, self.creator, {"budget": "1e30"})
        post.refresh_from_db()
        self.assertEqual(post.budget, Decimal("10.00"))

    def test_update_blank_dates(self):
        post = self.create_post()
        with self.assertRaisesMessage(ValidationError, "start date cannot be empty"):
            services.update_post(post.id, self.creator, {"start_date": ""})
        with self.assertRaisesMessage(ValidationError, "end date cannot be empty"):
            services.update_post(post.id, self.creator, {"end_date": "  "})

    def test_update_empty_caption(self):
        post = self.create_post()
        with self.assertRaisesMessage(ValidationError, "caption cannot be empty"):
            services.update_post(post.id, self.creator, {"caption": " "})

    def test_delete_post(self):
        post = self.create_post()
        services.delete_post(post.id, self.creator)
        self.assertFalse(Post.objects.filter(pk=post.pk).exists())
        self.assertFalse(Approval.objects.filter(post_id=post.pk).exists())

    def test_delete_requires_owner_or_admin(self):
        post = self.create_post()
        with self.assertRaises(ForbiddenError):
            services.delete_post(post.id, self.approver1)
        services.delete_post(post.id, self.admin)
        self.assertFalse(Post.objects.filter(pk=post.pk).exists())

    def test_publish_flow(self):
        post = self.create_post(approvers=[self.approver1])
        with self.assertRaises(ConflictError):
            services.publish_post(post.id, self.creator)

        services.approve_post(post.id, self.approver1)
        post = services.publish_post(post.id, self.creator)
        self.assertEqual(post.status, PostStatus.PUBLISHED)

        with self.assertRaisesMessage(ConflictError, "Cannot delete a published post"):
            services.delete_post(post.id, self.creator)

    def test_publish_rejected_post(self):
        post = self.create_post(approvers=[self.approver1])
        services.reject_post(post.id, self.approver1, "No")
        with self.assertRaises(ConflictError):
            services.publish_post(post.id, self.admin)

    def test_add_comment(self):
        post = self.create_post()
        comment = services.add_comment(post.id, self.approver2, "  Can we add the campus map?  ")
        self.assertEqual(comment.comment, "Can we add the campus map?")
        self.assertEqual(PostComment.objects.filter(post=post).count(), 1)

        with self.assertRaisesMessage(ValidationError, "Comment cannot be empty"):
            services.add_comment(post.id, self.approver2, "")
        with self.assertRaises(NotFoundError):
            services.add_comment(999999, self.approver2, "Hello")

    def test_visibility(self):
        post = self.create_post()
        self.assertEqual(services.get_post_for(post.id, self.creator).id, post.id)
        self.assertEqual(services.get_post_for(post.id, self.approver2).id, post.id)
        self.assertEqual(services.get_post_for(post.id, self.admin).id, post.id)
        with self.assertRaises(ForbiddenError):
            services.get_post_for(post.id, self.outsider)


class PostAPITestCase(PostTestMixin, TestCase):
    """Test cases for the post HTTP endpoints"""

    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def as_user(self, user):
        self.client.force_authenticate(user)

    def test_create_post_endpoint(self):
        self.as_user(self.creator)
        response = self.client.post("/api/posts/", self.post_data(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], PostStatus.PENDING_APPROVAL)
        self.assertEqual([a["order"] for a in response.data["approvals"]], [1, 2])
        self.assertEqual(response.data["approvals"][0]["approver"]["id"], self.approver1.id)
        self.assertEqual(response.data["current_approver_order"], 1)

    def test_validation_error_body(self):
        self.as_user(self.creator)
        response = self.client.post("/api/posts/", self.post_data(approvers=[]), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"error": "at least one approver required", "code": "validation_error"})

    def test_header_identity(self):
        response = self.client.post(
            "/api/posts/", self.post_data(), format="json", HTTP_X_USER_ID=str(self.creator.id)
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["creator"]["id"], self.creator.id)

    def test_unauthenticated(self):
        response = self.client.get("/api/posts/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_unverified_user_refused(self):
        self.creator.is_verified = False
        self.creator.save()
        self.as_user(self.creator)
        response = self.client.get("/api/posts/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_approve_and_reject_endpoints(self):
        post = self.create_post()

        self.as_user(self.approver2)
        response = self.client.post(f"/api/posts/{post.id}/approve/")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data, {"error": "not your turn", "code": "conflict"})

        self.as_user(self.approver1)
        response = self.client.post(f"/api/posts/{post.id}/approve/", {"comment": "Fine"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["current_approver_order"], 2)

        self.as_user(self.approver2)
        response = self.client.post(f"/api/posts/{post.id}/reject/", {"comment": ""}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f"/api/posts/{post.id}/reject/", {"comment": "Off brand"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], PostStatus.REJECTED)
        self.assertIsNone(response.data["current_approver_order"])

    def test_approve_errors(self):
        post = self.create_post()
        self.as_user(self.outsider)
        response = self.client.post(f"/api/posts/{post.id}/approve/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "forbidden")

        response = self.client.post("/api/posts/999999/approve/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_pending_endpoint(self):
        post = self.create_post()
        self.as_user(self.approver1)
        response = self.client.get("/api/posts/pending/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["posts"][0]["id"], post.id)

        self.as_user(self.approver2)
        response = self.client.get("/api/posts/pending/")
        self.assertEqual(response.data["count"], 0)

    def test_list_pagination(self):
        for index in range(3):
            self.create_post(caption=f"Post {index}")

        self.as_user(self.creator)
        response = self.client.get("/api/posts/", {"page": 1, "limit": 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p["caption"] for p in response.data["posts"]], ["Post 2", "Post 1"])
        self.assertEqual(
            response.data["pagination"],
            {"page": 1, "limit": 2, "total": 3, "total_pages": 2, "has_more": True},
        )

        response = self.client.get("/api/posts/", {"page": 2, "limit": 2})
        self.assertEqual(len(response.data["posts"]), 1)
        self.assertFalse(response.data["pagination"]["has_more"])

    def test_list_limit_capped(self):
        self.as_user(self.creator)
        response = self.client.get("/api/posts/", {"limit": 500})
        self.assertEqual(response.data["pagination"]["limit"], 100)

    def test_list_scoped_to_creator(self):
        self.create_post()
        self.as_user(self.outsider)
        response = self.client.get("/api/posts/")
        self.assertEqual(response.data["pagination"]["total"], 0)

        self.as_user(self.admin)
        response = self.client.get("/api/posts/", {"status": PostStatus.PENDING_APPROVAL})
        self.assertEqual(response.data["pagination"]["total"], 1)

    def test_list_unknown_status(self):
        self.as_user(self.admin)
        response = self.client.get("/api/posts/", {"status": "ARCHIVED"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_detail_update_delete(self):
        post = self.create_post()

        self.as_user(self.outsider)
        self.assertEqual(self.client.get(f"/api/posts/{post.id}/").status_code, status.HTTP_403_FORBIDDEN)

        self.as_user(self.creator)
        response = self.client.patch(f"/api/posts/{post.id}/", {"caption": "Edited"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["caption"], "Edited")

        response = self.client.delete(f"/api/posts/{post.id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Post deleted successfully.")
        self.assertEqual(self.client.get(f"/api/posts/{post.id}/").status_code, status.HTTP_404_NOT_FOUND)

    def test_publish_endpoint(self):
        post = self.create_post(approvers=[self.approver1])
        services.approve_post(post.id, self.approver1)

        self.as_user(self.creator)
        response = self.client.post(f"/api/posts/{post.id}/publish/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], PostStatus.PUBLISHED)

        response = self.client.patch(f"/api/posts/{post.id}/", {"caption": "Late edit"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_comment_endpoint(self):
        post = self.create_post()
        self.as_user(self.approver1)
        response = self.client.post(f"/api/posts/{post.id}/comments/", {"comment": "Nice photo"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["author"]["id"], self.approver1.id)

        detail = self.client.get(f"/api/posts/{post.id}/")
        self.assertEqual(detail.data["comments"][0]["comment"], "Nice photo")
