"""Application state store tests"""

from datetime import datetime, timedelta, timezone
import asyncio

import pytest

from app.core.exceptions import (
    AuthenticationException,
    BadRequestException,
    InvalidTransitionException,
    NotFoundException,
    UnauthorizedException,
)
from app.core.config import Settings
from app.models import ReferralStatus, RequestStatus, RequestType, utcnow
from app.repositories import MemoryDocumentStore, PersistenceGateway
from app.services import AutoReplyService, LoyaltyStore
from app.services.auto_reply import CLIENT_FALLBACK, CONCIERGE_FALLBACK

NOW = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)


class PausingDocumentStore(MemoryDocumentStore):
    """Yields to the event loop before every write"""

    async def set(self, collection, doc_id, data):
        await asyncio.sleep(0.01)
        await super().set(collection, doc_id, data)

    async def update(self, collection, doc_id, fields):
        await asyncio.sleep(0.01)
        await super().update(collection, doc_id, fields)


@pytest.fixture
def paused_store(identity, auto_reply, settings):
    gateway = PersistenceGateway(PausingDocumentStore(), identity, retry_attempts=1, retry_base_delay=0)
    return LoyaltyStore(gateway, auto_reply, settings)


@pytest.fixture
def later(monkeypatch):
    """Move the store and identity clocks forward"""
    def _advance(seconds):
        moment = utcnow() + timedelta(seconds=seconds)
        monkeypatch.setattr("app.services.store.utcnow", lambda: moment)
        monkeypatch.setattr("app.repositories.memory.utcnow", lambda: moment)
        return moment
    return _advance


async def test_load_seeds_welcome_notification(store):
    await store.load()

    assert len(store.notifications) == 1
    assert store.notifications[0].title == "Welcome!"


async def test_load_reads_every_collection(store, ada):
    await store.add_referral(ada, "Bo")
    await store.report_payment(ada, 1000)

    await store.load()

    assert [u.id for u in store.users] == [ada.id]
    assert len(store.referrals) == 1
    assert len(store.requests) == 1


class TestApprovals:

    async def test_spending_approval_updates_ledger_and_feed(self, store, ada, document_store):
        store._replace_user(ada.model_copy(update={"total_spent": 4800, "lifetime_spent": 24800}))
        request = await store.report_payment(ada, 300, service_name="The Lineup")
        assert request.proof_of_payment.startswith("REF-")
        assert request.is_pending

        approved, outcome = await store.approve_request(request.id, now=NOW)

        user = store.get_user(ada.id)
        assert approved.status == RequestStatus.APPROVED
        assert user.total_spent == 100
        assert user.lifetime_spent == 25100
        assert store.notifications[0].title == "N500 Bonus Unlocked!"
        assert outcome.notifications[0] == store.notifications[0]

        assert document_store.collections["users"][ada.id]["totalSpent"] == 100
        assert document_store.collections["approvalRequests"][request.id]["status"] == "approved"

    async def test_vip_approval(self, store, ada):
        request = await store.request_vip(ada)
        assert request.type == RequestType.VIP
        assert request.amount == 2500
        assert request.proof_of_payment.startswith("VIP-TRF-")

        await store.approve_request(request.id, now=NOW)

        user = store.get_user(ada.id)
        assert user.is_vip is True
        assert user.vip_expiry == NOW + timedelta(days=30)
        assert user.lifetime_spent == 2500
        assert user.total_spent == 0
        assert store.notifications[0].title == "Welcome to VIP Elite!"

    async def test_only_pending_requests_can_be_decided(self, store, ada):
        request = await store.report_payment(ada, 1000)
        await store.approve_request(request.id)

        with pytest.raises(InvalidTransitionException):
            await store.approve_request(request.id)
        with pytest.raises(InvalidTransitionException):
            await store.reject_request(request.id)

        assert store.get_user(ada.id).total_spent == 1000

    async def test_rejection_leaves_ledger_untouched(self, store, ada, document_store):
        request = await store.report_payment(ada, 1000)

        rejected = await store.reject_request(request.id)

        assert rejected.status == RequestStatus.REJECTED
        assert store.get_user(ada.id).total_spent == 0
        assert document_store.collections["approvalRequests"][request.id]["status"] == "rejected"

    async def test_unknown_request(self, store):
        with pytest.raises(NotFoundException):
            await store.approve_request("req-missing")

    async def test_unknown_client_leaves_request_pending(self, store, ada, document_store):
        request = await store.report_payment(ada, 1000)
        store.users = []
        del document_store.collections["users"][ada.id]

        with pytest.raises(NotFoundException):
            await store.approve_request(request.id)

        assert store.requests[0].is_pending
        assert document_store.collections["approvalRequests"][request.id]["status"] == "pending"

    async def test_failed_persistence_keeps_local_state(self, store, ada, document_store):
        request = await store.report_payment(ada, 1000)
        document_store.offline = True

        approved, _ = await store.approve_request(request.id)

        assert approved.status == RequestStatus.APPROVED
        assert store.get_user(ada.id).total_spent == 1000

    async def test_open_session_sees_updated_profile(self, store, ada):
        _, token = await store.login("ada@example.com", "secret123")
        request = await store.report_payment(ada, 1500)

        await store.approve_request(request.id)

        assert (await store.session_user(token)).total_spent == 1500

    async def test_positive_amount_required(self, store, ada):
        with pytest.raises(BadRequestException):
            await store.report_payment(ada, 0)


class TestReferrals:

    async def test_third_confirmation_rewards_and_resets(self, store, ada):
        referrals = [await store.add_referral(ada, name) for name in ("Bo", "Cy", "Di")]

        for referral in referrals[:2]:
            await store.confirm_referral(referral.id)
        assert store.get_user(ada.id).referral_count == 2

        completed, outcome = await store.confirm_referral(referrals[2].id)

        assert completed.status == ReferralStatus.COMPLETED
        assert outcome.user.referral_count == 0
        assert store.notifications[0].title == "FREE CUT UNLOCKED!"

    async def test_rejected_referral_is_final(self, store, ada):
        referral = await store.add_referral(ada, "Bo")

        rejected = await store.reject_referral(referral.id)

        assert rejected.status == ReferralStatus.REJECTED
        with pytest.raises(InvalidTransitionException):
            await store.confirm_referral(referral.id)
        assert store.get_user(ada.id).referral_count == 0

    async def test_friend_name_required(self, store, ada):
        with pytest.raises(BadRequestException):
            await store.add_referral(ada, "   ")


class TestConcurrentDecisions:

    async def test_double_approval_credits_once(self, paused_store):
        ada, _ = await paused_store.register("ada@example.com", "secret123", "Ada")
        request = await paused_store.report_payment(ada, 4900)

        results = await asyncio.gather(
            paused_store.approve_request(request.id),
            paused_store.approve_request(request.id),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InvalidTransitionException) for r in results) == 1
        user = paused_store.get_user(ada.id)
        assert user.total_spent == 4900
        assert user.lifetime_spent == 4900
        assert paused_store.notifications == []

    async def test_rejection_racing_approval_cannot_flip_status(self, paused_store):
        ada, _ = await paused_store.register("ada@example.com", "secret123", "Ada")
        request = await paused_store.report_payment(ada, 1000)

        approved, rejected = await asyncio.gather(
            paused_store.approve_request(request.id),
            paused_store.reject_request(request.id),
            return_exceptions=True,
        )

        assert isinstance(rejected, InvalidTransitionException)
        assert approved[0].status == RequestStatus.APPROVED
        assert paused_store.requests[0].status == RequestStatus.APPROVED
        assert paused_store.get_user(ada.id).total_spent == 1000

    async def test_double_referral_confirmation_counts_once(self, paused_store):
        ada, _ = await paused_store.register("ada@example.com", "secret123", "Ada")
        referral = await paused_store.add_referral(ada, "Bo")

        results = await asyncio.gather(
            paused_store.confirm_referral(referral.id),
            paused_store.confirm_referral(referral.id),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InvalidTransitionException) for r in results) == 1
        assert paused_store.get_user(ada.id).referral_count == 1


class TestSessions:

    async def test_logout_ends_session(self, store):
        user, token = await store.register("bo@example.com", "secret123", "Bo")

        assert (await store.session_user(token)).id == user.id
        await store.logout(token)
        await store.logout(token)

        with pytest.raises(UnauthorizedException):
            await store.session_user(token)

    async def test_admin_pin(self, store):
        token = store.admin_login("boss@example.com", "123456")
        assert store.is_admin(token)

        with pytest.raises(AuthenticationException):
            store.admin_login("boss@example.com", "000000")

        await store.logout(token)
        assert not store.is_admin(token)

    async def test_cached_session_expires(self, store, later):
        _, token = await store.register("bo@example.com", "secret123", "Bo")

        later(store.settings.SESSION_TTL_SECONDS + 1)

        with pytest.raises(UnauthorizedException):
            await store.session_user(token)
        assert token not in store.sessions

    async def test_expired_cache_is_revalidated_with_provider(self, gateway, auto_reply, monkeypatch):
        store = LoyaltyStore(gateway, auto_reply, Settings(SESSION_TTL_SECONDS=60))
        user, token = await store.register("bo@example.com", "secret123", "Bo")

        moment = utcnow() + timedelta(seconds=120)
        monkeypatch.setattr("app.services.store.utcnow", lambda: moment)

        assert (await store.session_user(token)).id == user.id
        assert store.sessions[token][1] == moment + timedelta(seconds=60)

    async def test_cached_expiry_never_outlives_token(self, gateway, auto_reply, identity):
        store = LoyaltyStore(gateway, auto_reply, Settings(SESSION_TTL_SECONDS=7200))
        _, token = await store.register("bo@example.com", "secret123", "Bo")
        store.sessions.clear()

        await store.session_user(token)

        assert store.sessions[token][1] == (await identity.verify_token(token)).expires_at

    async def test_admin_token_expires(self, store, later):
        token = store.admin_login("boss@example.com", "123456")

        later(store.settings.ADMIN_SESSION_TTL_SECONDS + 1)

        assert not store.is_admin(token)
        assert token not in store.admin_tokens

    async def test_expired_tokens_are_pruned_on_sign_in(self, store, later):
        for _ in range(5):
            store.admin_login("boss@example.com", "123456")
        _, stale = await store.register("bo@example.com", "secret123", "Bo")

        later(store.settings.ADMIN_SESSION_TTL_SECONDS + 1)
        fresh = store.admin_login("boss@example.com", "123456")

        assert list(store.admin_tokens) == [fresh]
        assert stale not in store.sessions

    async def test_profile_edit(self, store, ada, document_store):
        updated = await store.update_user(ada.id, {"name": "Ada L.", "profile_picture": "data:image/png;base64,AAA"})

        assert updated.name == "Ada L."
        assert document_store.collections["users"][ada.id]["profilePicture"].startswith("data:image")

        with pytest.raises(BadRequestException):
            await store.update_user(ada.id, {"total_spent": 99999})


class TestSocial:

    async def test_broadcast_posts_news(self, store):
        notification, announcement = await store.broadcast("Closed Monday", "Public holiday")

        assert store.notifications[0] == notification
        assert store.announcements[0] == announcement
        assert announcement.type.value == "news"
        assert announcement.date == "Latest Update"

    async def test_like_toggles(self, store, ada, document_store):
        _, announcement = await store.broadcast("Promo", "Half price lineups")

        liked = await store.toggle_announcement_like(announcement.id, ada)
        assert liked.likes == 1
        assert document_store.collections["announcements"][announcement.id]["likedBy"] == [ada.id]

        unliked = await store.toggle_announcement_like(announcement.id, ada)
        assert unliked.likes == 0

    async def test_testimonial_comments(self, store, ada):
        testimonial = await store.submit_testimonial(ada, "Best fade in town", 5)

        commented = await store.comment_on_testimonial(testimonial.id, ada, "  Agreed  ")

        assert commented.comments[0].text == "Agreed"
        assert commented.comments[0].user_name == "Ada"

        again = await store.comment_on_testimonial(testimonial.id, ada, "Second visit, same quality")
        assert again.comments[0] == commented.comments[0]
        assert len(again.comments) == 2
        with pytest.raises(BadRequestException):
            await store.comment_on_testimonial(testimonial.id, ada, "   ")

    async def test_announcement_comments_append(self, store, ada, document_store):
        _, announcement = await store.broadcast("Promo", "Half price lineups")

        first = await store.comment_on_announcement(announcement.id, ada, "Booked!")
        second = await store.comment_on_announcement(announcement.id, ada, "See you Friday")

        assert second.comments[0] == first.comments[0]
        assert [c.text for c in second.comments] == ["Booked!", "See you Friday"]
        assert len(document_store.collections["announcements"][announcement.id]["comments"]) == 2
        with pytest.raises(BadRequestException):
            await store.comment_on_announcement(announcement.id, ada, "")
        with pytest.raises(NotFoundException):
            await store.comment_on_announcement("ann-missing", ada, "Hello")

    async def test_testimonial_rating_bounds(self, store, ada):
        with pytest.raises(BadRequestException):
            await store.submit_testimonial(ada, "Great", 6)


class TestMessaging:

    async def test_client_message_alerts_admin_and_gets_concierge_reply(self, store, ada, completions, document_store):
        conversation = await store.client_send_message(ada, "Hi")

        assert conversation.unread_count == 1
        assert store.notifications[0].title == "Incoming Client Message"
        assert store.notifications[0].message == 'Ada: "Hi..."'

        reply = await store.concierge_auto_reply(ada.id, ada.name, "Hi")

        thread = store.conversation_for(ada.id)
        assert reply.sender_id == "concierge"
        assert thread.messages[-1].is_ai is True
        assert thread.last_message == "Noted, see you at six."
        assert thread.unread_count == 1
        assert "Ada" in completions.prompts[0]
        assert len(document_store.collections["conversations"][ada.id]["messages"]) == 2

    async def test_failed_generation_appends_nothing(self, store, ada, completions):
        completions.error = RuntimeError("model unavailable")
        await store.client_send_message(ada, "Hi")

        reply = await store.concierge_auto_reply(ada.id, ada.name, "Hi")

        assert reply is None
        assert len(store.conversation_for(ada.id).messages) == 1

    async def test_slow_generation_times_out(self, store, ada, completions):
        completions.delay = 0.5
        store.auto_reply.timeout = 0.01
        await store.client_send_message(ada, "Hi")

        reply = await store.concierge_auto_reply(ada.id, ada.name, "Hi")

        assert reply is None
        assert len(store.conversation_for(ada.id).messages) == 1

    async def test_admin_message_and_client_reply(self, store, ada):
        conversation = await store.admin_send_message(ada.id, "Your chair is ready")

        assert conversation.unread_count == 0
        assert conversation.messages[0].sender_id == "admin"

        reply = await store.client_auto_reply(ada.id, "Your chair is ready")

        assert reply.sender_id == ada.id
        assert store.conversation_for(ada.id).messages[-1] == reply

    async def test_mark_read(self, store, ada):
        await store.client_send_message(ada, "Hi")
        await store.client_send_message(ada, "Anyone there?")
        assert store.conversation_for(ada.id).unread_count == 2

        read = await store.mark_conversation_read(ada.id)

        assert read.unread_count == 0
        assert await store.mark_conversation_read("nobody") is None

    async def test_blank_message_rejected(self, store, ada):
        with pytest.raises(BadRequestException):
            await store.client_send_message(ada, "  ")


async def test_fallback_replies_without_api_key():
    service = AutoReplyService()

    assert await service.client_reply("Ada", "Ready?") == CLIENT_FALLBACK
    assert await service.concierge_reply("Ada", "Hi") == CONCIERGE_FALLBACK


async def test_dashboard_stats_and_search(store, ada):
    bo, _ = await store.register("bo@example.com", "secret123", "Bo")
    vip = await store.request_vip(ada)
    await store.approve_request(vip.id, now=NOW - timedelta(days=40))
    await store.report_payment(bo, 1000)
    await store.add_referral(bo, "Cy")

    stats = store.dashboard_stats(now=NOW)

    assert stats["pending_requests"] == 1
    assert stats["approved_requests"] == 1
    assert stats["pending_referrals"] == 1
    assert stats["total_revenue"] == 2500
    assert stats["total_clients"] == 2
    assert stats["active_vips"] == 0
    assert stats["expired_vips"] == 1

    assert [u.name for u in store.search_users("BO@")] == ["Bo"]
    assert len(store.search_users()) == 2
