"""
Reward / state engine
Pure decisions applied when a manager approves a claim or confirms a referral
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from app.core.config import settings
from app.models import ApprovalRequest, Notification, RequestType, Service, User

@dataclass
class RewardOutcome:
    """Updated user plus any notifications the change triggers"""

    user: User
    notifications: List[Notification] = field(default_factory=list)

def apply_spending_approval(
    user: User,
    amount: int,
    threshold: int = settings.SPENDING_THRESHOLD,
    bonus_amount: int = settings.BONUS_AMOUNT,
    currency: str = settings.CURRENCY_SYMBOL,
) -> RewardOutcome:
    """
    Add an approved payment to the cycle and lifetime totals

    Crossing the threshold emits exactly one bonus notification no matter
    how many multiples were crossed; the cycle total rolls over modulo
    the threshold.
    """
    new_total = user.total_spent + amount
    new_lifetime = user.lifetime_spent + amount
    notifications = []

    if new_total >= threshold:
        notifications.append(Notification.create(
            title=f"{currency}{bonus_amount} Bonus Unlocked!",
            message=(
                f"Congratulations! Cycle complete. You've earned an "
                f"{currency}{bonus_amount} credit. Progress refreshed."
            ),
            prefix="bonus",
        ))
        new_total = new_total % threshold

    updated = user.model_copy(update={"total_spent": new_total, "lifetime_spent": new_lifetime})
    return RewardOutcome(user=updated, notifications=notifications)

def apply_vip_approval(
    user: User,
    now: datetime,
    amount: int = 0,
    duration_days: int = settings.VIP_DURATION_DAYS,
) -> RewardOutcome:
    """Open a fresh VIP window from ``now``; remaining time never stacks"""
    expiry = now + timedelta(days=duration_days)
    updated = user.model_copy(update={
        "is_vip": True,
        "vip_expiry": expiry,
        "lifetime_spent": user.lifetime_spent + amount,
    })
    welcome = Notification.create(
        title="Welcome to VIP Elite!",
        message=(
            f"Congratulations {user.name}! Your VIP access is now active. Enjoy priority "
            f"booking, unlimited linings, and elite concierge access until "
            f"{format_expiry(expiry)}."
        ),
        prefix="vip-welcome",
    )
    return RewardOutcome(user=updated, notifications=[welcome])

def apply_referral_confirmation(user: User, goal: int = settings.REFERRAL_GOAL) -> RewardOutcome:
    """Count a confirmed referral; the goal unlocks a free cut and resets"""
    new_count = user.referral_count + 1
    notifications = []

    if new_count >= goal:
        notifications.append(Notification.create(
            title="FREE CUT UNLOCKED!",
            message=f"You've referred {goal} friends! Enjoy your free session. Counter refreshed.",
            prefix="reward",
        ))
        new_count = 0

    return RewardOutcome(
        user=user.model_copy(update={"referral_count": new_count}),
        notifications=notifications,
    )

def apply_approval(user: User, request: ApprovalRequest, now: datetime) -> RewardOutcome:
    """Dispatch an approved request to its rule"""
    if request.type == RequestType.VIP:
        return apply_vip_approval(user, now, amount=request.amount)
    return apply_spending_approval(user, request.amount)

def toggle_like(liked_by: List[str], user_id: str) -> List[str]:
    """Add the user to the like set, or remove them if already present"""
    if user_id in liked_by:
        return [uid for uid in liked_by if uid != user_id]
    return [*liked_by, user_id]

def payment_amount(
    service: Service,
    room_service: bool = False,
    room_service_fee: int = settings.ROOM_SERVICE_FEE,
) -> int:
    """Price of a service, plus the home-visit fee when requested"""
    return service.price + (room_service_fee if room_service else 0)

def format_expiry(expiry: Optional[datetime]) -> str:
    """Short day-month form, e.g. ``17 Nov``"""
    if expiry is None:
        return ""
    return f"{expiry.day} {expiry.strftime('%b')}"
