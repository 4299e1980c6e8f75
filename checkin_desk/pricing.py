from __future__ import annotations

"""
EMBED_SUMMARY: Pricing configuration defaults/normalization and the pure payment status calculator.
EMBED_TAGS: pricing, payments, refunds, student discount, adjustments

Formula:
- base_due = 0 if payment.total_transaction != 0 else payment.total_owed
- student_due = pricing.student_fixed_fee if student_discount else base_due (substituted, not subtracted)
- delta = custom_delta if adjustment.key == "other" else adjustment.delta_amount
- amount = student_due + delta; > 0 due, < 0 refund (abs reported), == 0 prepaid
"""

from typing import Any, List, Optional

from .schemas import AdjustmentOption, ParticipantRecord, PaymentStatus, PricingConfig
from .utils import coerce_int, parse_truthy


OTHER_KEY = "other"
NONE_KEY = "none"

DEFAULT_ADJUSTMENT_OPTIONS: List[AdjustmentOption] = [
    AdjustmentOption(key=NONE_KEY, label="変更なし", delta_amount=0, requires_reason=False),
    AdjustmentOption(key="general_to_bring", label="一般→持参 (-1000円)", delta_amount=-1000),
    AdjustmentOption(key="bring_to_general", label="持参→一般 (+1000円)", delta_amount=1000),
    AdjustmentOption(key="student_general", label="学割（一般）(-3000円)", delta_amount=-3000),
    AdjustmentOption(key="student_bring", label="学割（持参）(-2000円)", delta_amount=-2000),
    AdjustmentOption(key=OTHER_KEY, label="その他（理由と金額を入力）", delta_amount=0, requires_reason=True),
]

NO_ADJUSTMENT = DEFAULT_ADJUSTMENT_OPTIONS[0]


def default_pricing_config() -> PricingConfig:
    return PricingConfig(
        general_fee=4000,
        bring_console_fee=3000,
        student_fixed_fee=1000,
        adjustment_options=[opt.model_copy() for opt in DEFAULT_ADJUSTMENT_OPTIONS],
    )


def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def normalize_adjustment(data: dict) -> AdjustmentOption:
    return AdjustmentOption(
        key=str(_first(data, "key") or "").strip(),
        label=str(_first(data, "label") or "").strip(),
        delta_amount=coerce_int(_first(data, "delta_amount", "deltaAmount")),
        requires_reason=parse_truthy(_first(data, "requires_reason", "requiresReason")),
    )


def normalize_pricing_config(data: Optional[dict]) -> PricingConfig:
    """Build a complete PricingConfig from loosely shaped input.

    Accepts snake_case or camelCase keys. Missing fees fall back to the defaults,
    options without a key or label are dropped and duplicate keys keep the first one.
    """
    data = data or {}
    defaults = default_pricing_config()

    raw_options = _first(data, "adjustment_options", "adjustmentOptions")
    if isinstance(raw_options, list):
        options: List[AdjustmentOption] = []
        seen = set()
        for item in raw_options:
            if isinstance(item, AdjustmentOption):
                opt = item
            elif isinstance(item, dict):
                opt = normalize_adjustment(item)
            else:
                continue
            if not opt.key or not opt.label or opt.key in seen:
                continue
            seen.add(opt.key)
            options.append(opt)
    else:
        options = defaults.adjustment_options

    def fee(snake: str, camel: str, fallback: int) -> int:
        value = _first(data, snake, camel)
        return fallback if value is None else coerce_int(value)

    return PricingConfig(
        general_fee=fee("general_fee", "generalFee", defaults.general_fee),
        bring_console_fee=fee("bring_console_fee", "bringConsoleFee", defaults.bring_console_fee),
        student_fixed_fee=fee("student_fixed_fee", "studentFixedFee", defaults.student_fixed_fee),
        adjustment_options=options,
    )


def resolve_delta(adjustment: AdjustmentOption, custom_delta: int) -> int:
    if adjustment.key == OTHER_KEY:
        return coerce_int(custom_delta)
    return coerce_int(adjustment.delta_amount)


def compute_status(
    participant: ParticipantRecord,
    student_discount: bool,
    adjustment: AdjustmentOption,
    custom_delta: int,
    pricing: PricingConfig,
) -> PaymentStatus:
    payment = participant.payment
    base_due = 0 if coerce_int(payment.total_transaction) != 0 else coerce_int(payment.total_owed)
    student_due = coerce_int(pricing.student_fixed_fee) if student_discount else base_due
    amount = student_due + resolve_delta(adjustment, custom_delta)
    if amount > 0:
        return PaymentStatus(status="due", amount=amount, label=f"{amount:,}円 支払")
    if amount < 0:
        return PaymentStatus(status="refund", amount=abs(amount), label=f"{abs(amount):,}円 返金")
    return PaymentStatus(status="prepaid", amount=0, label="支払い不要")
