"""Reward engine tests"""

from datetime import datetime, timedelta, timezone

from app.models import ApprovalRequest, RequestType, Service, Testimonial
from app.services.rewards import (
    apply_approval,
    apply_referral_confirmation,
    apply_spending_approval,
    apply_vip_approval,
    format_expiry,
    payment_amount,
    toggle_like,
)

NOW = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)


class TestSpendingApproval:

    def test_crossing_threshold_rolls_over_and_awards_bonus(self, make_user):
        user = make_user(total_spent=4800, lifetime_spent=24800)

        outcome = apply_spending_approval(user, 300)

        assert outcome.user.total_spent == 100
        assert outcome.user.lifetime_spent == 25100
        assert len(outcome.notifications) == 1
        assert outcome.notifications[0].title == "N500 Bonus Unlocked!"

    def test_below_threshold_accumulates_silently(self, make_user):
        outcome = apply_spending_approval(make_user(total_spent=1000), 1500)

        assert outcome.user.total_spent == 2500
        assert outcome.user.lifetime_spent == 1500
        assert outcome.notifications == []

    def test_exact_threshold_resets_to_zero(self, make_user):
        outcome = apply_spending_approval(make_user(total_spent=4500), 500)

        assert outcome.user.total_spent == 0
        assert len(outcome.notifications) == 1

    def test_multiple_thresholds_emit_single_bonus(self, make_user):
        outcome = apply_spending_approval(make_user(total_spent=4000), 7000)

        assert outcome.user.total_spent == 1000
        assert outcome.user.lifetime_spent == 7000
        assert len(outcome.notifications) == 1

    def test_original_user_is_untouched(self, make_user):
        user = make_user(total_spent=4800)
        apply_spending_approval(user, 300)
        assert user.total_spent == 4800


class TestVipApproval:

    def test_opens_thirty_day_window(self, make_user):
        outcome = apply_vip_approval(make_user(total_spent=1200), NOW, amount=2500)

        assert outcome.user.is_vip is True
        assert outcome.user.vip_expiry == NOW + timedelta(days=30)
        assert outcome.user.lifetime_spent == 2500
        assert outcome.user.total_spent == 1200
        assert outcome.notifications[0].title == "Welcome to VIP Elite!"
        assert "16 Nov" in outcome.notifications[0].message

    def test_renewal_restarts_from_now(self, make_user):
        user = make_user(is_vip=True, vip_expiry=NOW + timedelta(days=10))

        outcome = apply_vip_approval(user, NOW)

        assert outcome.user.vip_expiry == NOW + timedelta(days=30)

    def test_dispatch_by_request_type(self, make_user):
        request = ApprovalRequest(
            id="vip-1",
            user_id="u1",
            user_name="Ada",
            amount=2500,
            type=RequestType.VIP,
            proof_of_payment="VIP-TRF-000001",
            timestamp="09:30",
        )

        outcome = apply_approval(make_user(), request, NOW)

        assert outcome.user.is_vip is True
        assert outcome.user.is_vip_active(NOW)
        assert not outcome.user.is_vip_active(NOW + timedelta(days=31))


class TestReferralConfirmation:

    def test_third_referral_unlocks_free_cut(self, make_user):
        outcome = apply_referral_confirmation(make_user(referral_count=2))

        assert outcome.user.referral_count == 0
        assert outcome.notifications[0].title == "FREE CUT UNLOCKED!"

    def test_earlier_referrals_only_count(self, make_user):
        outcome = apply_referral_confirmation(make_user(referral_count=0))

        assert outcome.user.referral_count == 1
        assert outcome.notifications == []


def test_toggle_like_adds_then_removes():
    liked = toggle_like([], "u1")
    assert liked == ["u1"]
    assert toggle_like(liked, "u1") == []
    assert toggle_like(["u2"], "u1") == ["u2", "u1"]


def test_likes_count_follows_liked_by():
    testimonial = Testimonial.from_document({
        "id": "t1",
        "userId": "u1",
        "userName": "Ada",
        "content": "Sharp fade",
        "rating": 5,
        "date": "Just now",
        "likedBy": ["u2", "u2", "u3"],
        "likes": 40,
    })

    assert testimonial.liked_by == ["u2", "u3"]
    assert testimonial.likes == 2


def test_room_service_adds_fee():
    service = Service(id="1", name="Signature Fade", price=1000)
    assert payment_amount(service) == 1000
    assert payment_amount(service, room_service=True) == 1500


def test_format_expiry():
    assert format_expiry(datetime(2026, 11, 16)) == "16 Nov"
    assert format_expiry(None) == ""
