from __future__ import annotations

"""
EMBED_SUMMARY: Dashboard aggregation over a tournament's participant snapshot plus search/filter for the operator list.
EMBED_TAGS: dashboard, aggregates, participants, payments, checkin

Each row is priced with no student discount and the "none" adjustment, i.e. what the
participant would pay if checked in right now without changes.
"""

from typing import Iterable, List, Optional

from .pricing import NO_ADJUSTMENT, NONE_KEY, compute_status
from .schemas import DashboardSummary, ParticipantOut, ParticipantRecord, PaymentStatus, PricingConfig
from .utils import display_name


FILTER_MODES = ("all", "checkedIn", "notCheckedIn")


def default_status(participant: ParticipantRecord, pricing: PricingConfig) -> PaymentStatus:
    adjustment = pricing.find_option(NONE_KEY) or NO_ADJUSTMENT
    return compute_status(participant, False, adjustment, 0, pricing)


def participant_out(participant: ParticipantRecord, pricing: PricingConfig) -> ParticipantOut:
    return ParticipantOut(
        **participant.model_dump(),
        display_name=display_name(participant),
        payment_status=default_status(participant, pricing),
    )


def filter_participants(
    participants: Iterable[ParticipantRecord], q: Optional[str] = None, mode: str = "all"
) -> List[ParticipantRecord]:
    needle = (q or "").strip().lower()
    items: List[ParticipantRecord] = []
    for p in participants:
        if needle and needle not in display_name(p).lower() and needle not in p.participant_id:
            continue
        if mode == "checkedIn" and not p.checked_in:
            continue
        if mode == "notCheckedIn" and p.checked_in:
            continue
        items.append(p)
    return items


def summarize(tournament_id: str, participants: Iterable[ParticipantRecord], pricing: PricingConfig) -> DashboardSummary:
    total = checked = 0
    due_count = due_amount = refund_count = refund_amount = prepaid_count = 0
    for p in participants:
        total += 1
        if p.checked_in:
            checked += 1
        status = default_status(p, pricing)
        if status.status == "due":
            due_count += 1
            due_amount += status.amount
        elif status.status == "refund":
            refund_count += 1
            refund_amount += status.amount
        else:
            prepaid_count += 1
    return DashboardSummary(
        tournament_id=tournament_id,
        participants_total=total,
        checked_in=checked,
        not_checked_in=total - checked,
        due_count=due_count,
        due_amount=due_amount,
        refund_count=refund_count,
        refund_amount=refund_amount,
        prepaid_count=prepaid_count,
    )
