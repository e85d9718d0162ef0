"""
User model.

A User is the login account. Subscriptions are billed per User; church
membership is optional and goes through the Member record.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from church_admin.models.base import Base, TimestampMixin, generate_uuid


class User(Base, TimestampMixin):
    """Authenticated account. Owns subscriptions, optionally linked to one Member."""

    __tablename__ = "users"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )
    email = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True
    )
    name = Column(
        String(200),
        nullable=True
    )

    subscriptions = relationship(
        "Subscription",
        back_populates="user",
        lazy="selectin",
        cascade="all, delete-orphan"
    )
    member = relationship(
        "Member",
        back_populates="user",
        uselist=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
