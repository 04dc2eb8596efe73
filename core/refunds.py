from dataclasses import dataclass
from datetime import datetime, timedelta

REFUNDABLE_STATUSES = ("pending", "confirmed")


@dataclass(frozen=True)
class RefundTier:
    min_lead_hours: float
    percent: int


@dataclass(frozen=True)
class RefundDecision:
    eligible: bool
    amount: int
    percent: int
    lead_hours: float


class RefundPolicy:
    """
    Tiered refund schedule keyed on lead time (start time minus cancellation time).

    A tier applies when the lead time is strictly greater than its threshold;
    the first matching tier, from the longest threshold down, wins.
    """

    def __init__(self, tiers, refundable_statuses=REFUNDABLE_STATUSES):
        parsed = [t if isinstance(t, RefundTier) else RefundTier(float(t[0]), int(t[1])) for t in tiers]
        for tier in parsed:
            if tier.min_lead_hours < 0 or not 0 <= tier.percent <= 100:
                raise ValueError(f"Invalid refund tier: {tier}")
        self.tiers = sorted(parsed, key=lambda t: t.min_lead_hours, reverse=True)
        self.refundable_statuses = tuple(refundable_statuses)

    @classmethod
    def from_config(cls, config):
        return cls(config.get("REFUND_TIERS", [(24, 100), (1, 50)]))

    def compute(self, status: str, total_amount: int, start_time: datetime, now: datetime) -> RefundDecision:
        lead = start_time - now
        lead_hours = lead / timedelta(hours=1)

        if status not in self.refundable_statuses or lead <= timedelta(0):
            return RefundDecision(False, 0, 0, lead_hours)

        for tier in self.tiers:
            if lead > timedelta(hours=tier.min_lead_hours):
                amount = min(total_amount, total_amount * tier.percent // 100)
                return RefundDecision(amount > 0, amount, tier.percent, lead_hours)

        return RefundDecision(False, 0, 0, lead_hours)
