"""Typed interfaces for ledger-layer computations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from brokerage_ledger.db import BrokerageDetailRecord, BrokerageSummaryRecord

from .fee_formulas import BrokerageCalculationDetail
from .periods import CalculationPeriod


@dataclass(frozen=True)
class BrokerageCalculationResult:
    """Outcome of one (client, period) calculation.

    Attributes:
        period: Resolved calculation period.
        summary: Persisted summary row after the replace.
        details: Detail rows computed and persisted by this run.
    """

    period: CalculationPeriod
    summary: BrokerageSummaryRecord
    details: list[BrokerageCalculationDetail]


class BrokerageCalculationPort(Protocol):
    """Port definition for brokerage calculation and summary reads."""

    def brokerage_calculate(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
        clear_payment: bool = False,
    ) -> BrokerageCalculationResult:
        """Recompute and persist one (client, period).

        Args:
            client_id: Client identifier.
            period_kind: `day`, `month` or `quarter`.
            period_start: First local date of the period.
            clear_payment: Reset quarter payment state instead of carrying it forward.

        Returns:
            BrokerageCalculationResult: Persisted summary and computed details.

        Raises:
            DataIntegrityError: Raised when trade history cannot be matched.
            ConfigurationMissingError: Raised when rate or quarter day count is absent.
            InvalidPeriodError: Raised when the period request is malformed.
        """

    def brokerage_get_summary(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> BrokerageSummaryRecord | None:
        """Return the last persisted summary without recomputation.

        Raises:
            InvalidPeriodError: Raised when the period kind is unknown.
        """

    def brokerage_list_details(
        self,
        client_id: int,
        period_kind: str,
        period_start: date,
    ) -> list[BrokerageDetailRecord]:
        """Return persisted detail rows of one (client, period).

        Raises:
            InvalidPeriodError: Raised when the period kind is unknown.
        """


__all__ = ["BrokerageCalculationPort", "BrokerageCalculationResult"]
