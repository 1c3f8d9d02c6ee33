"""Driver / company settlement of a completed trip."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .fares import HUNDRED, Number, to_money
from .errors import InvalidInput


@dataclass(frozen=True)
class CommissionSplit:
    driver_share: Decimal
    company_share: Decimal

    @property
    def total(self) -> Decimal:
        return self.driver_share + self.company_share


class CommissionSplitter:
    """Split a settled amount by the configured driver percentage.

    The driver share is rounded half-up; the company receives the exact
    remainder so the two shares always add up to the total.
    """

    def __init__(self, driver_percent: Number):
        self.driver_percent = self._check_percent(driver_percent)

    @staticmethod
    def _check_percent(driver_percent: Number) -> Decimal:
        percent = Decimal(str(driver_percent))
        if not (0 < percent < HUNDRED):
            raise InvalidInput(
                f"Driver commission must be strictly between 0 and 100, got {driver_percent}"
            )
        return percent

    def split(self, total_amount: Number) -> CommissionSplit:
        return split(total_amount, self.driver_percent)


def split(total_amount: Number, driver_percent: Number) -> CommissionSplit:
    percent = CommissionSplitter._check_percent(driver_percent)
    total = to_money(total_amount)
    if total < 0:
        raise InvalidInput(f"Amount to split must not be negative, got {total_amount}")
    driver_share = to_money(total * percent / HUNDRED)
    return CommissionSplit(driver_share=driver_share, company_share=total - driver_share)
