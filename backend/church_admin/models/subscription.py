"""
Subscription model linking a User to a Plan.

A user may accumulate several subscriptions over time. Only the most recent
one with status 'active' counts for entitlements.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, DateTime, Enum, ForeignKey, Index
)
from sqlalchemy.orm import relationship

from church_admin.models.base import Base, TimestampMixin, generate_uuid


class SubscriptionStatus:
    """Subscription status values."""
    PENDING = "pending"      # Checkout started, payment not confirmed
    ACTIVE = "active"        # Paid and current
    PAST_DUE = "past_due"    # Payment failed
    CANCELED = "canceled"
    EXPIRED = "expired"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(Base, TimestampMixin):
    """Billing record of a user on a plan."""

    __tablename__ = "subscriptions"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    plan_id = Column(
        String(36),
        ForeignKey("plans.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    status = Column(
        Enum(
            "pending", "active", "past_due", "canceled", "expired",
            name="subscription_status"
        ),
        nullable=False,
        default=SubscriptionStatus.PENDING,
        index=True
    )
    started_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        comment="When the subscription started"
    )
    ended_at = Column(
        DateTime(timezone=True),
        nullable=True
    )

    user = relationship("User", back_populates="subscriptions")
    plan = relationship("Plan", back_populates="subscriptions", lazy="joined")

    __table_args__ = (
        Index("ix_subscriptions_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id}, user_id={self.user_id}, status={self.status})>"

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE
