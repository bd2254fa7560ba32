"""Tests for administrator transitions and dashboard analytics."""

import asyncio
from datetime import timedelta

import pytest

from conftest import PNG_BYTES, USER_PASSWORD
from gatekeeper.domain.errors import UserNotFound, ValidationError
from gatekeeper.domain.models import DEFAULT_REJECTION_REASON, Approved, Rejected, UserStatus
from gatekeeper.infrastructure.storage.screenshot_store import ScreenshotUpload


class TestTransitions:
    def test_approve_sets_thirty_day_window(self, approval_service, make_users, clock):
        (user,) = make_users(1)

        approved = approval_service.approve(user.id)

        assert approved.status is UserStatus.APPROVED
        assert approved.is_approved is True
        assert approved.rejection_reason is None
        assert approved.subscription_start_date == clock.now
        assert approved.subscription_end_date - approved.subscription_start_date == timedelta(days=30)
        assert approved.lifecycle == Approved(since=clock.now, until=clock.now + timedelta(days=30))

    def test_reject_keeps_subscription_history(self, approval_service, make_users):
        (user,) = make_users(1)
        approved = approval_service.approve(user.id)

        rejected = approval_service.reject(user.id, "doc unclear")

        assert rejected.status is UserStatus.REJECTED
        assert rejected.is_approved is False
        assert rejected.rejection_reason == "doc unclear"
        assert rejected.subscription_start_date == approved.subscription_start_date
        assert rejected.subscription_end_date == approved.subscription_end_date

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_defaults_reason(self, approval_service, make_users, reason):
        (user,) = make_users(1)

        rejected = approval_service.reject(user.id, reason)

        assert rejected.rejection_reason == DEFAULT_REJECTION_REASON
        assert rejected.lifecycle == Rejected(reason=DEFAULT_REJECTION_REASON)

    def test_approve_reject_approve_reflects_latest_action(self, approval_service, make_users, clock):
        (user,) = make_users(1)
        first = approval_service.approve(user.id)
        clock.advance(days=3)
        approval_service.reject(user.id, "doc unclear")
        clock.advance(days=2)

        latest = approval_service.approve(user.id)

        assert latest.status is UserStatus.APPROVED
        assert latest.is_approved is True
        assert latest.rejection_reason is None
        assert latest.subscription_start_date == first.subscription_start_date + timedelta(days=5)
        assert latest.subscription_end_date - latest.subscription_start_date == timedelta(days=30)

    @pytest.mark.parametrize("action", ["approve", "reject", "delete_user", "get_user"])
    def test_unknown_user(self, approval_service, action):
        with pytest.raises(UserNotFound):
            getattr(approval_service, action)(12345)

    def test_delete_removes_record_and_screenshot(self, approval_service, registration_service, screenshots):
        upload = ScreenshotUpload(data=PNG_BYTES, filename="proof.png", content_type="image/png")
        user = asyncio.run(
            registration_service.register_with_upload("Dan Low", "dan@x.com", USER_PASSWORD, "nayapay", upload)
        )

        approval_service.delete_user(user.id)

        with pytest.raises(UserNotFound):
            approval_service.get_user(user.id)
        assert screenshots.resolve(user.payment_screenshot) is None


class TestListing:
    def test_second_page_of_forty_five(self, approval_service, make_users):
        make_users(45)

        page = approval_service.list_users(page=2, limit=20)

        assert len(page.items) == 20
        assert page.total == 45
        assert page.page_count == 3

    def test_status_all_disables_filter(self, approval_service, make_users):
        users = make_users(3)
        approval_service.approve(users[0].id)

        assert approval_service.list_users(status="all").total == 3
        assert approval_service.list_users(status="approved").total == 1
        assert approval_service.list_users(status="pending").total == 2

    def test_search_ignores_accented_case(self, approval_service, make_users):
        (target,) = make_users(1, prefix="emile", name="Émile Zola")

        page = approval_service.list_users(search="émile")

        assert page.total == 1
        assert page.items[0].id == target.id

    @pytest.mark.parametrize("kwargs", [{"status": "archived"}, {"page": 0}, {"limit": 0}, {"limit": 500}])
    def test_invalid_listing_arguments(self, approval_service, kwargs):
        with pytest.raises(ValidationError):
            approval_service.list_users(**kwargs)


class TestDashboard:
    def test_approval_rate_and_counts(self, approval_service, make_users):
        users = make_users(10)
        for user in users[:3]:
            approval_service.approve(user.id)
        for user in users[3:5]:
            approval_service.reject(user.id, "x")

        summary = approval_service.get_dashboard_summary()

        assert summary.total_users == 10
        assert summary.approved_users == 3
        assert summary.rejected_users == 2
        assert summary.pending_users == 5
        assert summary.approval_rate == 30.0
        assert summary.recent_registrations == 10
        assert len(summary.recent_users) == 5
        assert [user.id for user in summary.pending_users_list] == [user.id for user in reversed(users[5:])]

    def test_empty_dashboard(self, approval_service):
        summary = approval_service.get_dashboard_summary()

        assert summary.total_users == 0
        assert summary.approval_rate == 0
        assert summary.recent_users == []

    def test_active_users_need_recent_login_and_approval(self, approval_service, make_users, persistence, clock):
        users = make_users(3)
        for user in users:
            approval_service.approve(user.id)
        persistence.record_user_login(users[0].id, clock.now - timedelta(days=1))
        persistence.record_user_login(users[1].id, clock.now - timedelta(days=10))
        persistence.record_user_login(users[2].id, clock.now)
        approval_service.reject(users[2].id, "refund")

        summary = approval_service.get_dashboard_summary()

        assert summary.active_users == 1

    def test_approval_rate_rounds_to_two_decimals(self, approval_service, make_users):
        users = make_users(3)
        approval_service.approve(users[0].id)

        assert approval_service.get_dashboard_summary().approval_rate == 33.33
