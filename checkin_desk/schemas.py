from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class APIResponse(BaseModel):
    ok: bool = True
    message: Optional[str] = None


# Pricing
class AdjustmentOption(BaseModel):
    key: str
    label: str
    delta_amount: int = 0
    requires_reason: bool = False


class PricingConfig(BaseModel):
    general_fee: int = 4000
    bring_console_fee: int = 3000
    student_fixed_fee: int = 1000
    adjustment_options: List[AdjustmentOption] = Field(default_factory=list)

    def find_option(self, key: str) -> Optional[AdjustmentOption]:
        for option in self.adjustment_options:
            if option.key == key:
                return option
        return None


class PricingOut(BaseModel):
    tournament_id: str
    name: Optional[str] = None
    pricing_config: PricingConfig


class PricingUpdate(BaseModel):
    tournament_id: str
    name: Optional[str] = None
    # Raw shape; normalized server side so partial or sloppy input still yields a full config
    pricing_config: Dict[str, Any] = Field(default_factory=dict)


class PaymentStatus(BaseModel):
    status: str  # due|refund|prepaid
    amount: int
    label: str


# Participants
class PaymentTotals(BaseModel):
    total_transaction: int = 0
    total_owed: int = 0
    total_paid: int = 0


class ParticipantRecord(BaseModel):
    participant_id: str
    player_name: Optional[str] = None
    admin_notes: Optional[str] = None
    payment: PaymentTotals = Field(default_factory=PaymentTotals)
    checked_in: bool = False
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    edit_notes: str = ""


class ParticipantOut(ParticipantRecord):
    display_name: str
    payment_status: PaymentStatus


class ParticipantsListResponse(BaseModel):
    items: List[ParticipantOut]
    total: int


class ParticipantsImport(BaseModel):
    tournament_id: str
    participants: List[Dict[str, Any]] = Field(default_factory=list)


class ImportResult(BaseModel):
    ok: bool = True
    count: int


class LookupRequest(BaseModel):
    tournament_id: str
    raw: str


class QuoteRequest(BaseModel):
    tournament_id: str
    participant_id: str
    student_discount: bool = False
    adjustment_key: str = "none"
    custom_delta: int = 0


class CheckinRequest(BaseModel):
    tournament_id: str
    participant_id: str
    adjustment_key: str = "none"
    custom_delta: int = 0
    custom_reason: str = ""
    operator_user_id: Optional[str] = None


class CheckinOut(BaseModel):
    ok: bool = True
    note_entry: str
    participant: ParticipantRecord


# Dashboard
class DashboardSummary(BaseModel):
    tournament_id: str
    participants_total: int
    checked_in: int
    not_checked_in: int
    due_count: int
    due_amount: int
    refund_count: int
    refund_amount: int
    prepaid_count: int


# start.gg
class ViewerOut(BaseModel):
    id: Optional[Any] = None
    slug: Optional[str] = None
    email: Optional[str] = None
    gamerTag: Optional[str] = None


class SessionOut(BaseModel):
    authenticated: bool
    user: Optional[ViewerOut] = None


class ManagedTournament(BaseModel):
    id: Optional[Any] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    startAt: Optional[int] = None
    city: Optional[str] = None
    addrState: Optional[str] = None
    countryCode: Optional[str] = None


class ManagedTournamentsResponse(BaseModel):
    tournaments: List[ManagedTournament]
