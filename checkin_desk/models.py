from __future__ import annotations

"""
EMBED_SUMMARY: Persistence models for tournaments (pricing config), participant records and the system log.
EMBED_TAGS: models, tournaments, participants, pricing, checkin, audit
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class Tournament(Base):
    __tablename__ = "tournaments"
    """
    EMBED_SUMMARY: Per-tournament document holding the organizer's pricing configuration.
    EMBED_TAGS: tournaments, pricing, config
    """

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pricing_config: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Participant(Base):
    __tablename__ = "participants"
    """
    EMBED_SUMMARY: Whitelisted roster fields plus check-in latch and append-only audit notes, keyed by tournament + participant id.
    EMBED_TAGS: participants, roster, payments, checkin, audit
    """

    tournament_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("tournaments.id", ondelete="CASCADE"), primary_key=True
    )
    participant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    player_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_transaction: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_owed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_paid: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    checked_in: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    checked_in_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    edit_notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_participants_checked_in", "tournament_id", "checked_in"),
    )


class SystemLog(Base):
    __tablename__ = "system_log"
    """
    EMBED_SUMMARY: Append-only application log for imports, check-ins and pricing edits.
    EMBED_TAGS: logs, audit, integrations
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ts: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    actor: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    entity: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
