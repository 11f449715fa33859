from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


class GroupStatus(str, enum.Enum):
    OPEN = "open"
    ASSIGNED = "assigned"


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True)
    telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
    title = Column(String, nullable=True)
    status = Column(
        Enum(
            GroupStatus,
            name="group_status",
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=GroupStatus.OPEN,
        server_default=GroupStatus.OPEN.value,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    last_assignment_seed = Column(Integer, nullable=True)
    revealed_count = Column(Integer, nullable=False, default=0, server_default="0")

    participants = relationship(
        "Participant",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="Participant.created_at",
    )
    exclusions = relationship("Exclusion", back_populates="group", cascade="all, delete-orphan")
    assignments = relationship("AssignmentRecord", back_populates="group", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, telegram_id={self.telegram_id}, status={self.status})>"


class Participant(Base):
    __tablename__ = "participants"

    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    group = relationship("Group", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("group_id", "name", name="uq_participants_group_name"),
    )

    def __repr__(self) -> str:
        return f"<Participant(id={self.id}, group_id={self.group_id}, name={self.name})>"


class Exclusion(Base):
    __tablename__ = "exclusions"

    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    participant1_id = Column(String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    participant2_id = Column(String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    group = relationship("Group", back_populates="exclusions")
    participant1 = relationship("Participant", foreign_keys=[participant1_id])
    participant2 = relationship("Participant", foreign_keys=[participant2_id])

    def as_pair(self) -> tuple[str, str]:
        return self.participant1_id, self.participant2_id


class AssignmentRecord(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    giver_id = Column(String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    reveal_position = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    group = relationship("Group", back_populates="assignments")
    giver = relationship("Participant", foreign_keys=[giver_id])
    receiver = relationship("Participant", foreign_keys=[receiver_id])

    __table_args__ = (
        UniqueConstraint("group_id", "giver_id", name="uq_assignments_group_giver"),
        UniqueConstraint("group_id", "reveal_position", name="uq_assignments_group_reveal_position"),
    )
