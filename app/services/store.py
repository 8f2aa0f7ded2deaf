"""
Application state store
In-process system of record; every mutation is applied locally first and
then mirrored to the persistence gateway
"""

from datetime import datetime, timedelta
from typing import Any, Awaitable, Dict, List, Optional, Tuple
import asyncio
import logging
import random
import secrets

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import (
    AuthenticationException,
    BadRequestException,
    InvalidTransitionException,
    NotFoundException,
    UnauthorizedException,
)
from app.models import (
    ADMIN_SENDER_ID,
    CONCIERGE_SENDER_ID,
    Announcement,
    AnnouncementType,
    ApprovalRequest,
    ChatMessage,
    Comment,
    Conversation,
    Notification,
    Referral,
    ReferralStatus,
    RequestStatus,
    RequestType,
    Testimonial,
    User,
    new_id,
    utcnow,
)
from app.repositories import PersistenceGateway
from app.services import conversation as threads
from app.services.auto_reply import CONCIERGE_NAME, AutoReplyService
from app.services.rewards import RewardOutcome, apply_approval, apply_referral_confirmation, toggle_like

logger = logging.getLogger(__name__)

LEDGER_FIELDS = ("total_spent", "lifetime_spent", "referral_count", "is_vip", "vip_expiry")
PROFILE_FIELDS = {"name", "profile_picture"}

class LoyaltyStore:
    """
    Holds every entity collection for the running process

    Persistence is at-least-once and never rolls back: when a gateway
    write fails the error is logged and local state stays authoritative.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        auto_reply: AutoReplyService,
        config: Settings = default_settings,
    ):
        self.gateway = gateway
        self.auto_reply = auto_reply
        self.settings = config

        self.users: List[User] = []
        self.notifications: List[Notification] = []
        self.announcements: List[Announcement] = []
        self.testimonials: List[Testimonial] = []
        self.requests: List[ApprovalRequest] = []
        self.referrals: List[Referral] = []
        self.conversations: List[Conversation] = []

        # session token -> (user id, expires at)
        self.sessions: Dict[str, Tuple[str, datetime]] = {}
        # admin token -> expires at
        self.admin_tokens: Dict[str, datetime] = {}

    # ===== LIFECYCLE =====

    async def load(self) -> None:
        """Pull every collection from the gateway"""
        (
            notifications,
            announcements,
            testimonials,
            requests,
            referrals,
            conversations,
            users,
        ) = await asyncio.gather(
            self.gateway.list_notifications(),
            self.gateway.list_announcements(),
            self.gateway.list_testimonials(),
            self.gateway.list_approval_requests(),
            self.gateway.list_referrals(),
            self.gateway.list_conversations(),
            self.gateway.list_users(),
        )

        self.notifications = notifications or [Notification(
            id="n1",
            title="Welcome!",
            message="Join our VIP for unlimited linings and priority booking.",
            timestamp="2h ago",
        )]
        self.announcements = announcements
        self.testimonials = testimonials
        self.requests = requests
        self.referrals = referrals
        self.conversations = conversations
        self.users = users

        logger.info(
            f"Store loaded: {len(users)} users, {len(requests)} requests, "
            f"{len(referrals)} referrals, {len(conversations)} conversations"
        )

    async def _persist(self, operation: Awaitable[Any], action: str) -> None:
        """Await a gateway write; failures are logged, never raised"""
        try:
            await operation
        except Exception as e:
            logger.error(f"Error {action}: {str(e)}")

    async def _notify(self, notification: Notification) -> None:
        self.notifications.insert(0, notification)
        await self._persist(self.gateway.add_notification(notification), "saving notification")

    # ===== USERS & SESSIONS =====

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def _replace_user(self, user: User) -> None:
        """Swap in the new profile; sessions resolve through the same list"""
        for index, existing in enumerate(self.users):
            if existing.id == user.id:
                self.users[index] = user
                return
        self.users.append(user)

    def _session_expiry(self, now: datetime, expires_at: Optional[datetime] = None) -> datetime:
        """Configured lifetime, capped by the token's own expiry when known"""
        expiry = now + timedelta(seconds=self.settings.SESSION_TTL_SECONDS)
        return min(expiry, expires_at) if expires_at else expiry

    def _prune_sessions(self, now: datetime) -> None:
        self.sessions = {t: entry for t, entry in self.sessions.items() if entry[1] > now}
        self.admin_tokens = {t: expiry for t, expiry in self.admin_tokens.items() if expiry > now}

    def _open_session(self, user: User, token: Optional[str]) -> str:
        now = utcnow()
        self._prune_sessions(now)
        token = token or secrets.token_urlsafe(32)
        self._replace_user(user)
        self.sessions[token] = (user.id, self._session_expiry(now))
        return token

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        user, token = await self.gateway.authenticate(email, password)
        token = self._open_session(user, token)
        logger.info(f"User logged in: {user.id}")
        return user, token

    async def register(self, email: str, password: str, name: str) -> Tuple[User, str]:
        user, token = await self.gateway.register(email, password, name)
        return user, self._open_session(user, token)

    async def logout(self, token: str) -> None:
        """Close the session; unknown tokens are ignored"""
        self.admin_tokens.pop(token, None)
        entry = self.sessions.pop(token, None)
        if entry is None:
            return
        user_id = entry[0]
        for other in [t for t, (uid, _) in self.sessions.items() if uid == user_id]:
            del self.sessions[other]
        await self.gateway.logout(user_id)

    async def session_user(self, token: str) -> User:
        """
        Resolve a bearer token to the current profile

        Cached sessions are trusted until they expire; after that the
        identity provider has to vouch for the token again.
        """
        now = utcnow()
        entry = self.sessions.get(token)
        if entry is not None and entry[1] <= now:
            del self.sessions[token]
            entry = None

        if entry is None:
            claims = await self.gateway.resolve_session(token)
            now = utcnow()
            self._prune_sessions(now)
            user_id = claims.uid
            self.sessions[token] = (user_id, self._session_expiry(now, claims.expires_at))
        else:
            user_id = entry[0]

        user = self.get_user(user_id)
        if user is None:
            user = await self.gateway.fetch_profile(user_id)
            if user is None:
                raise UnauthorizedException("Profile not found for this session")
            self._replace_user(user)
        return user

    def admin_login(self, email: str, pin: str) -> str:
        """Admin portal sign-in with the master PIN"""
        if not email or not secrets.compare_digest(pin.encode(), self.settings.ADMIN_PIN.encode()):
            raise AuthenticationException("Invalid admin credentials")
        now = utcnow()
        self._prune_sessions(now)
        token = secrets.token_urlsafe(32)
        self.admin_tokens[token] = now + timedelta(seconds=self.settings.ADMIN_SESSION_TTL_SECONDS)
        logger.info(f"Admin portal opened by {email}")
        return token

    def is_admin(self, token: str) -> bool:
        expiry = self.admin_tokens.get(token)
        if expiry is None:
            return False
        if expiry <= utcnow():
            del self.admin_tokens[token]
            return False
        return True

    async def update_user(self, user_id: str, fields: Dict[str, Any]) -> User:
        """Profile edits (name, picture); counters are not editable here"""
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundException("User not found")

        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise BadRequestException(f"Fields not editable: {', '.join(sorted(unknown))}")

        updated = user.model_copy(update=fields)
        self._replace_user(updated)
        await self._persist(self.gateway.update_profile(user_id, fields), "updating user profile")
        return updated

    def search_users(self, query: Optional[str] = None) -> List[User]:
        if not query:
            return list(self.users)
        needle = query.lower()
        return [u for u in self.users if needle in u.name.lower() or needle in u.email.lower()]

    # ===== CLAIMS =====

    async def report_payment(
        self,
        user: User,
        amount: int,
        service_name: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> ApprovalRequest:
        if amount <= 0:
            raise BadRequestException("Amount must be positive")

        request = ApprovalRequest(
            id=new_id("req"),
            user_id=user.id,
            user_name=user.name,
            amount=amount,
            type=RequestType.SPENDING,
            service_name=service_name,
            comment=comment,
            proof_of_payment=f"REF-{random.randint(0, 999999):06d}",
            timestamp=threads.display_time(),
        )
        self.requests.insert(0, request)
        await self._persist(self.gateway.add_approval_request(request), "saving approval request")
        return request

    async def request_vip(
        self,
        user: User,
        proof_ref: Optional[str] = None,
        proof_image: Optional[str] = None,
    ) -> ApprovalRequest:
        request = ApprovalRequest(
            id=new_id("vip"),
            user_id=user.id,
            user_name=user.name,
            amount=self.settings.VIP_SUBSCRIPTION_FEE,
            type=RequestType.VIP,
            proof_of_payment=proof_ref or f"VIP-TRF-{random.randint(0, 999999):06d}",
            proof_image=proof_image,
            timestamp=threads.display_time(),
        )
        self.requests.insert(0, request)
        await self._persist(self.gateway.add_approval_request(request), "saving VIP request")
        return request

    async def add_referral(self, user: User, friend_name: str) -> Referral:
        friend_name = friend_name.strip()
        if not friend_name:
            raise BadRequestException("Friend name is required")

        referral = Referral(id=new_id("ref"), referrer_id=user.id, referred_name=friend_name)
        self.referrals.insert(0, referral)
        await self._persist(self.gateway.add_referral(referral), "saving referral")
        return referral

    def requests_for(self, user_id: str) -> List[ApprovalRequest]:
        return [r for r in self.requests if r.user_id == user_id]

    def referrals_for(self, user_id: str) -> List[Referral]:
        return [r for r in self.referrals if r.referrer_id == user_id]

    # ===== ADMIN DECISIONS =====

    def _find_request(self, request_id: str) -> ApprovalRequest:
        request = next((r for r in self.requests if r.id == request_id), None)
        if request is None:
            raise NotFoundException("Approval request not found")
        return request

    def _find_referral(self, referral_id: str) -> Referral:
        referral = next((r for r in self.referrals if r.id == referral_id), None)
        if referral is None:
            raise NotFoundException("Referral not found")
        return referral

    async def _load_user(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if user is None:
            fetched = await self.gateway.fetch_profile(user_id)
            # another decision may have loaded the profile meanwhile
            user = self.get_user(user_id) or fetched
        if user is None:
            raise NotFoundException(f"User {user_id} not found")
        return user

    async def _settle(self, outcome: RewardOutcome) -> None:
        """Apply a reward outcome to state, feed and store"""
        self._replace_user(outcome.user)
        for notification in outcome.notifications:
            await self._notify(notification)
        ledger = {name: getattr(outcome.user, name) for name in LEDGER_FIELDS}
        await self._persist(self.gateway.update_profile(outcome.user.id, ledger), "updating user")

    def _set_request_status(self, request: ApprovalRequest, status: RequestStatus) -> ApprovalRequest:
        updated = request.model_copy(update={"status": status})
        self.requests = [updated if r.id == request.id else r for r in self.requests]
        return updated

    def _set_referral_status(self, referral: Referral, status: ReferralStatus) -> Referral:
        updated = referral.model_copy(update={"status": status})
        self.referrals = [updated if r.id == referral.id else r for r in self.referrals]
        return updated

    async def approve_request(
        self, request_id: str, now: Optional[datetime] = None
    ) -> Tuple[ApprovalRequest, RewardOutcome]:
        request = self._find_request(request_id)
        if not request.is_pending:
            raise InvalidTransitionException("Request", request.status.value, RequestStatus.APPROVED.value)
        # claimed before the first await so a concurrent decision sees it
        approved = self._set_request_status(request, RequestStatus.APPROVED)

        try:
            user = await self._load_user(request.user_id)
        except NotFoundException:
            self._set_request_status(approved, RequestStatus.PENDING)
            raise

        outcome = apply_approval(user, request, now or utcnow())
        await self._settle(outcome)
        await self._persist(
            self.gateway.update_approval_request(request_id, {"status": RequestStatus.APPROVED}),
            "updating approval request",
        )
        logger.info(f"Request {request_id} approved for {user.id} ({request.type.value}, {request.amount})")
        return approved, outcome

    async def reject_request(self, request_id: str) -> ApprovalRequest:
        request = self._find_request(request_id)
        if not request.is_pending:
            raise InvalidTransitionException("Request", request.status.value, RequestStatus.REJECTED.value)

        rejected = self._set_request_status(request, RequestStatus.REJECTED)
        await self._persist(
            self.gateway.update_approval_request(request_id, {"status": RequestStatus.REJECTED}),
            "updating approval request",
        )
        return rejected

    async def confirm_referral(self, referral_id: str) -> Tuple[Referral, RewardOutcome]:
        referral = self._find_referral(referral_id)
        if not referral.is_pending:
            raise InvalidTransitionException("Referral", referral.status.value, ReferralStatus.COMPLETED.value)
        completed = self._set_referral_status(referral, ReferralStatus.COMPLETED)

        try:
            user = await self._load_user(referral.referrer_id)
        except NotFoundException:
            self._set_referral_status(completed, ReferralStatus.PENDING)
            raise

        outcome = apply_referral_confirmation(user, goal=self.settings.REFERRAL_GOAL)
        await self._settle(outcome)
        await self._persist(
            self.gateway.update_referral(referral_id, {"status": ReferralStatus.COMPLETED}),
            "updating referral",
        )
        return completed, outcome

    async def reject_referral(self, referral_id: str) -> Referral:
        referral = self._find_referral(referral_id)
        if not referral.is_pending:
            raise InvalidTransitionException("Referral", referral.status.value, ReferralStatus.REJECTED.value)

        rejected = self._set_referral_status(referral, ReferralStatus.REJECTED)
        await self._persist(
            self.gateway.update_referral(referral_id, {"status": ReferralStatus.REJECTED}),
            "updating referral",
        )
        return rejected

    # ===== BROADCAST & SOCIAL =====

    async def broadcast(self, title: str, message: str) -> Tuple[Notification, Announcement]:
        """Push a notification and a matching news post"""
        notification = Notification.create(title=title, message=message)
        announcement = Announcement(
            id=new_id("ann"),
            title=title,
            description=message,
            date="Latest Update",
            type=AnnouncementType.NEWS,
        )
        self.notifications.insert(0, notification)
        self.announcements.insert(0, announcement)

        await self._persist(
            asyncio.gather(
                self.gateway.add_notification(notification),
                self.gateway.add_announcement(announcement),
            ),
            "broadcasting",
        )
        return notification, announcement

    async def submit_testimonial(
        self,
        user: User,
        content: str,
        rating: int,
        image: Optional[str] = None,
    ) -> Testimonial:
        if not content.strip():
            raise BadRequestException("Testimonial content is required")
        if not 1 <= rating <= 5:
            raise BadRequestException("Rating must be between 1 and 5")

        testimonial = Testimonial(
            id=new_id("t"),
            user_id=user.id,
            user_name=user.name,
            user_image=user.profile_picture,
            content=content,
            rating=rating,
            date="Just now",
            image=image,
        )
        self.testimonials.insert(0, testimonial)
        await self._persist(self.gateway.add_testimonial(testimonial), "submitting testimonial")
        return testimonial

    def _find_testimonial(self, testimonial_id: str) -> Testimonial:
        testimonial = next((t for t in self.testimonials if t.id == testimonial_id), None)
        if testimonial is None:
            raise NotFoundException("Testimonial not found")
        return testimonial

    def _find_announcement(self, announcement_id: str) -> Announcement:
        announcement = next((a for a in self.announcements if a.id == announcement_id), None)
        if announcement is None:
            raise NotFoundException("Announcement not found")
        return announcement

    @staticmethod
    def _new_comment(user: User, text: str, prefix: str) -> Comment:
        text = text.strip()
        if not text:
            raise BadRequestException("Comment text is required")
        return Comment(
            id=new_id(prefix),
            user_id=user.id,
            user_name=user.name,
            user_image=user.profile_picture,
            text=text,
            timestamp="Just now",
        )

    async def toggle_testimonial_like(self, testimonial_id: str, user: User) -> Testimonial:
        testimonial = self._find_testimonial(testimonial_id)
        updated = testimonial.model_copy(update={"liked_by": toggle_like(testimonial.liked_by, user.id)})
        self.testimonials = [updated if t.id == testimonial_id else t for t in self.testimonials]
        await self._persist(
            self.gateway.update_testimonial(testimonial_id, {"liked_by": updated.liked_by, "likes": updated.likes}),
            "updating testimonial",
        )
        return updated

    async def toggle_announcement_like(self, announcement_id: str, user: User) -> Announcement:
        announcement = self._find_announcement(announcement_id)
        updated = announcement.model_copy(update={"liked_by": toggle_like(announcement.liked_by, user.id)})
        self.announcements = [updated if a.id == announcement_id else a for a in self.announcements]
        await self._persist(
            self.gateway.update_announcement(announcement_id, {"liked_by": updated.liked_by, "likes": updated.likes}),
            "updating announcement",
        )
        return updated

    async def comment_on_testimonial(self, testimonial_id: str, user: User, text: str) -> Testimonial:
        testimonial = self._find_testimonial(testimonial_id)
        comment = self._new_comment(user, text, "c")
        updated = testimonial.model_copy(update={"comments": [*testimonial.comments, comment]})
        self.testimonials = [updated if t.id == testimonial_id else t for t in self.testimonials]
        await self._persist(
            self.gateway.update_testimonial(testimonial_id, {"comments": updated.comments}),
            "saving comment",
        )
        return updated

    async def comment_on_announcement(self, announcement_id: str, user: User, text: str) -> Announcement:
        announcement = self._find_announcement(announcement_id)
        comment = self._new_comment(user, text, "ca")
        updated = announcement.model_copy(update={"comments": [*announcement.comments, comment]})
        self.announcements = [updated if a.id == announcement_id else a for a in self.announcements]
        await self._persist(
            self.gateway.update_announcement(announcement_id, {"comments": updated.comments}),
            "saving comment",
        )
        return updated

    # ===== MESSAGING =====

    def conversation_for(self, user_id: str) -> Optional[Conversation]:
        return threads.find_conversation(self.conversations, user_id)

    async def _save_conversation(self, user_id: str, existed: bool) -> None:
        conversation = self.conversation_for(user_id)
        if conversation is None:
            return
        if existed:
            operation = self.gateway.update_conversation(user_id, {
                "last_message": conversation.last_message,
                "timestamp": conversation.timestamp,
                "unread_count": conversation.unread_count,
                "messages": conversation.messages,
            })
        else:
            operation = self.gateway.add_conversation(conversation)
        await self._persist(operation, "saving conversation")

    async def _append(self, user_id: str, user_name: str, message: ChatMessage, from_admin: bool) -> Conversation:
        existed = self.conversation_for(user_id) is not None
        self.conversations = threads.append_message(
            self.conversations, user_id, user_name, message, from_admin=from_admin
        )
        await self._save_conversation(user_id, existed)
        return self.conversation_for(user_id)

    async def _append_reply(self, user_id: str, message: ChatMessage) -> Optional[ChatMessage]:
        if self.conversation_for(user_id) is None:
            return None
        self.conversations = threads.append_ai_reply(self.conversations, user_id, message)
        await self._save_conversation(user_id, existed=True)
        return message

    async def admin_send_message(self, user_id: str, text: str) -> Conversation:
        """Manager message into a client's thread, opening it if needed"""
        if not text.strip():
            raise BadRequestException("Message text is required")
        user = self.get_user(user_id)
        user_name = user.name if user else "Client"
        message = threads.new_message(ADMIN_SENDER_ID, self.settings.ADMIN_SESSION_NAME, text)
        return await self._append(user_id, user_name, message, from_admin=True)

    async def client_send_message(self, user: User, text: str) -> Conversation:
        """Client message to management; alerts the admin feed"""
        if not text.strip():
            raise BadRequestException("Message text is required")
        message = threads.new_message(user.id, user.name, text)
        conversation = await self._append(user.id, user.name, message, from_admin=False)

        await self._notify(Notification.create(
            title="Incoming Client Message",
            message=threads.message_preview(user.name, text),
            prefix="an",
        ))
        return conversation

    async def client_auto_reply(self, user_id: str, admin_text: str) -> Optional[ChatMessage]:
        """Simulated answer from the client after a manager message"""
        user = self.get_user(user_id)
        user_name = user.name if user else "Client"
        reply = await self.auto_reply.client_reply(user_name, admin_text)
        if not reply:
            return None
        message = threads.new_message(user_id, user_name, reply, is_ai=True)
        return await self._append_reply(user_id, message)

    async def concierge_auto_reply(self, user_id: str, user_name: str, client_text: str) -> Optional[ChatMessage]:
        """Concierge answer after a client message"""
        reply = await self.auto_reply.concierge_reply(user_name, client_text)
        if not reply:
            return None
        message = threads.new_message(CONCIERGE_SENDER_ID, CONCIERGE_NAME, reply, is_ai=True)
        return await self._append_reply(user_id, message)

    async def mark_conversation_read(self, user_id: str) -> Optional[Conversation]:
        if self.conversation_for(user_id) is None:
            return None
        self.conversations = threads.mark_read(self.conversations, user_id)
        await self._persist(
            self.gateway.update_conversation(user_id, {"unread_count": 0}),
            "marking conversation read",
        )
        return self.conversation_for(user_id)

    # ===== REPORTING =====

    def dashboard_stats(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Admin portal headline numbers"""
        now = now or utcnow()
        vips = [u for u in self.users if u.is_vip]
        active_vips = sum(1 for u in vips if u.is_vip_active(now))
        return {
            "pending_requests": sum(1 for r in self.requests if r.status == RequestStatus.PENDING),
            "approved_requests": sum(1 for r in self.requests if r.status == RequestStatus.APPROVED),
            "pending_referrals": sum(1 for r in self.referrals if r.status == ReferralStatus.PENDING),
            "total_revenue": sum(u.lifetime_spent for u in self.users),
            "total_clients": len(self.users),
            "active_vips": active_vips,
            "expired_vips": len(vips) - active_vips,
            "unread_messages": sum(c.unread_count for c in self.conversations),
        }
