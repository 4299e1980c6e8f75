from __future__ import annotations

"""
EMBED_SUMMARY: Persistence operations for pricing configs and participants; wraps the pure check-in/import core.
EMBED_TAGS: store, persistence, participants, pricing, checkin, transactions

Every committed participant write publishes the tournament's ordered snapshot to the feed.
Check-in uses a conditional update (checked_in = false) so concurrent attempts on one
participant produce exactly one success.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .checkin import check_in
from .errors import AlreadyCheckedIn, ParticipantNotFound, UnknownAdjustment
from .feed import ParticipantFeed, participant_feed
from .models import Participant, SystemLog, Tournament
from .pricing import default_pricing_config, normalize_pricing_config
from .roster import IMPORT_OPERATOR
from .schemas import AdjustmentOption, ParticipantRecord, PaymentTotals, PricingConfig


logger = logging.getLogger("checkin")


def to_record(row: Participant) -> ParticipantRecord:
    return ParticipantRecord(
        participant_id=row.participant_id,
        player_name=row.player_name,
        admin_notes=row.admin_notes,
        payment=PaymentTotals(
            total_transaction=row.total_transaction or 0,
            total_owed=row.total_owed or 0,
            total_paid=row.total_paid or 0,
        ),
        checked_in=bool(row.checked_in),
        checked_in_at=row.checked_in_at,
        checked_in_by=row.checked_in_by,
        edit_notes=row.edit_notes or "",
    )


def _apply_record(row: Participant, record: ParticipantRecord) -> None:
    row.player_name = record.player_name
    row.admin_notes = record.admin_notes
    row.total_transaction = record.payment.total_transaction
    row.total_owed = record.payment.total_owed
    row.total_paid = record.payment.total_paid
    row.checked_in = record.checked_in
    row.checked_in_at = record.checked_in_at
    row.checked_in_by = record.checked_in_by
    row.edit_notes = record.edit_notes or ""


def _roster_values(record: ParticipantRecord) -> dict:
    return {
        "player_name": record.player_name,
        "admin_notes": record.admin_notes,
        "total_transaction": record.payment.total_transaction,
        "total_owed": record.payment.total_owed,
        "total_paid": record.payment.total_paid,
    }


def _latch_check_in(db: Session, tournament_id: str, participant_id: str, record: ParticipantRecord) -> None:
    """Mark a stored row checked in unless a check-in already landed; never touches edit_notes."""
    db.execute(
        update(Participant)
        .where(
            Participant.tournament_id == tournament_id,
            Participant.participant_id == participant_id,
            Participant.checked_in == False,  # noqa: E712
        )
        .values(
            checked_in=True,
            checked_in_at=record.checked_in_at or datetime.utcnow(),
            checked_in_by=record.checked_in_by or IMPORT_OPERATOR,
        )
        .execution_options(synchronize_session=False)
    )


# Tournaments / pricing
def ensure_tournament(db: Session, tournament_id: str) -> Tournament:
    """Fetch the tournament document, creating it with default pricing on first access."""
    tournament = db.get(Tournament, tournament_id)
    if tournament is None:
        tournament = Tournament(id=tournament_id, pricing_config=default_pricing_config().model_dump())
        db.add(tournament)
        db.commit()
        db.refresh(tournament)
        logger.info("tournament created with default pricing tournament=%s", tournament_id)
    return tournament


def get_pricing_config(db: Session, tournament_id: str) -> PricingConfig:
    tournament = ensure_tournament(db, tournament_id)
    if not tournament.pricing_config:
        return default_pricing_config()
    return normalize_pricing_config(tournament.pricing_config)


def save_pricing_config(
    db: Session, tournament_id: str, raw_config: dict, name: Optional[str] = None
) -> Tuple[Tournament, PricingConfig]:
    tournament = ensure_tournament(db, tournament_id)
    config = normalize_pricing_config(raw_config)
    tournament.pricing_config = config.model_dump()
    if name is not None:
        tournament.name = name
    db.add(tournament)
    db.add(SystemLog(actor="organizer", action="pricing.update", entity="tournament", entity_id=tournament_id, status="ok"))
    db.commit()
    db.refresh(tournament)
    return tournament, config


def find_adjustment(config: PricingConfig, key: str) -> AdjustmentOption:
    option = config.find_option(key)
    if option is None:
        raise UnknownAdjustment(f"Unknown adjustment option: {key}")
    return option


# Participants
def list_participants(db: Session, tournament_id: str) -> List[ParticipantRecord]:
    rows = db.execute(
        select(Participant)
        .where(Participant.tournament_id == tournament_id)
        .order_by(Participant.participant_id)
    ).scalars().all()
    return [to_record(r) for r in rows]


def load_participant_map(db: Session, tournament_id: str) -> Dict[str, ParticipantRecord]:
    return {p.participant_id: p for p in list_participants(db, tournament_id)}


def get_participant(db: Session, tournament_id: str, participant_id: str) -> ParticipantRecord:
    row = db.get(Participant, (tournament_id, participant_id))
    if row is None:
        raise ParticipantNotFound(f"Participant {participant_id} not found")
    return to_record(row)


def publish_snapshot(db: Session, tournament_id: str, feed: ParticipantFeed = participant_feed) -> None:
    feed.publish(tournament_id, list_participants(db, tournament_id))


def save_merged(
    db: Session,
    tournament_id: str,
    merged: Dict[str, ParticipantRecord],
    imported_count: int,
    source: str,
    feed: ParticipantFeed = participant_feed,
) -> None:
    ensure_tournament(db, tournament_id)
    stored_ids = set(
        db.execute(select(Participant.participant_id).where(Participant.tournament_id == tournament_id)).scalars()
    )
    for participant_id, record in merged.items():
        if participant_id not in stored_ids:
            row = Participant(tournament_id=tournament_id, participant_id=participant_id)
            _apply_record(row, record)
            db.add(row)
            continue
        # Existing rows: roster columns only; audit columns belong to the check-in path
        db.execute(
            update(Participant)
            .where(Participant.tournament_id == tournament_id, Participant.participant_id == participant_id)
            .values(**_roster_values(record), updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if record.checked_in:
            _latch_check_in(db, tournament_id, participant_id, record)
    db.add(
        SystemLog(
            actor="operator",
            action="participants.import",
            entity="tournament",
            entity_id=tournament_id,
            status="ok",
            message=f"source={source} count={imported_count}",
        )
    )
    db.commit()
    logger.info("import saved tournament=%s source=%s count=%s", tournament_id, source, imported_count)
    publish_snapshot(db, tournament_id, feed)


def check_in_participant(
    db: Session,
    tournament_id: str,
    participant_id: str,
    adjustment: AdjustmentOption,
    custom_delta: int,
    custom_reason: str,
    operator_id: str,
    now: Optional[datetime] = None,
    feed: ParticipantFeed = participant_feed,
) -> Tuple[ParticipantRecord, str]:
    current = get_participant(db, tournament_id, participant_id)
    updated, note = check_in(current, adjustment, custom_delta, custom_reason, operator_id, now or datetime.utcnow())

    result = db.execute(
        update(Participant)
        .where(
            Participant.tournament_id == tournament_id,
            Participant.participant_id == participant_id,
            Participant.checked_in == False,  # noqa: E712
        )
        .values(
            checked_in=True,
            checked_in_at=updated.checked_in_at,
            checked_in_by=updated.checked_in_by,
            edit_notes=updated.edit_notes,
            updated_at=datetime.utcnow(),
        )
    )
    if result.rowcount != 1:
        db.rollback()
        raise AlreadyCheckedIn(f"Participant {participant_id} is already checked in")

    db.add(
        SystemLog(
            actor=operator_id,
            action="participants.checkin",
            entity="participant",
            entity_id=f"{tournament_id}/{participant_id}",
            status="ok",
            message=note,
        )
    )
    db.commit()
    logger.info("checked in tournament=%s participant=%s by=%s", tournament_id, participant_id, operator_id)
    publish_snapshot(db, tournament_id, feed)
    return updated, note
