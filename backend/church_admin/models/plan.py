"""
Plan model for subscription tiers.

Plans are GLOBAL (not church-scoped) - they define the product offerings.
The features column stores catalog ids from constants.plan_features; it is
validated on write by PlanService and re-filtered on read by the
entitlements resolver.
"""

from sqlalchemy import Column, String, Integer, Boolean, JSON
from sqlalchemy.orm import relationship

from church_admin.models.base import Base, TimestampMixin, generate_uuid


class Plan(Base, TimestampMixin):
    """
    Defines a pricing tier, its features and its limits.

    Limits are nullable: NULL means unlimited.
    """

    __tablename__ = "plans"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )
    name = Column(
        String(100),
        nullable=False,
        unique=True,
        comment="Plan name (free, premium)"
    )
    code = Column(
        String(50),
        nullable=True,
        comment="Optional short code (FREE, PREMIUM)"
    )
    price_cents = Column(
        Integer,
        nullable=False,
        default=0,
        comment="Monthly price in cents"
    )
    features = Column(
        JSON,
        nullable=False,
        default=list,
        comment="Feature ids from the plan feature catalog"
    )
    max_members = Column(
        Integer,
        nullable=True,
        comment="Maximum members per church (NULL = unlimited)"
    )
    max_branches = Column(
        Integer,
        nullable=True,
        comment="Maximum branches per church (NULL = unlimited)"
    )
    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Whether plan is available for new subscriptions"
    )

    subscriptions = relationship(
        "Subscription",
        back_populates="plan",
        lazy="dynamic"
    )

    def __repr__(self) -> str:
        return f"<Plan(name={self.name}, price_cents={self.price_cents})>"

    @property
    def is_free(self) -> bool:
        return (self.price_cents or 0) == 0
