"""
Church, Branch, Member and PermissionGrant models.

Tenant hierarchy: User -> optional Member -> Branch -> Church.
The Church is the tenant boundary; a church may have several branches.
"""

from sqlalchemy import (
    Column, String, Enum, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from church_admin.constants.permissions import Role
from church_admin.models.base import Base, TimestampMixin, generate_uuid


class Church(Base, TimestampMixin):
    """Top-level tenant."""

    __tablename__ = "churches"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )
    name = Column(
        String(200),
        nullable=False
    )

    branches = relationship(
        "Branch",
        back_populates="church",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Church(id={self.id}, name={self.name})>"


class Branch(Base, TimestampMixin):
    """A congregation location belonging to exactly one church."""

    __tablename__ = "branches"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )
    name = Column(
        String(200),
        nullable=False
    )
    church_id = Column(
        String(36),
        ForeignKey("churches.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    church = relationship("Church", back_populates="branches")
    members = relationship("Member", back_populates="branch")

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, church_id={self.church_id})>"


class Member(Base, TimestampMixin):
    """
    Church membership record.

    role drives RoleGate and the elevated-role bypass of PermissionGate.
    user_id is optional: members may exist without a login account.
    """

    __tablename__ = "members"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )
    name = Column(
        String(200),
        nullable=False
    )
    role = Column(
        Enum(
            *[r.value for r in Role],
            name="member_role"
        ),
        nullable=False,
        default=Role.MEMBER.value,
        index=True
    )
    branch_id = Column(
        String(36),
        ForeignKey("branches.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True
    )

    branch = relationship("Branch", back_populates="members")
    user = relationship("User", back_populates="member")
    permissions = relationship(
        "PermissionGrant",
        back_populates="member",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_members_branch_role", "branch_id", "role"),
    )

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, role={self.role}, branch_id={self.branch_id})>"


class PermissionGrant(Base, TimestampMixin):
    """
    Fine-grained capability granted to a member.

    type is a free-form string; see constants.permissions.PermissionType
    for the known values.
    """

    __tablename__ = "permissions"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )
    member_id = Column(
        String(36),
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    type = Column(
        String(100),
        nullable=False
    )

    member = relationship("Member", back_populates="permissions")

    __table_args__ = (
        UniqueConstraint("member_id", "type", name="uq_permission_member_type"),
    )

    def __repr__(self) -> str:
        return f"<PermissionGrant(member_id={self.member_id}, type={self.type})>"
