"""Credit composition — a buyer's selection of quotas to buy together.

Quotas combine into one credit only when they share an administrator. Pure
Python, no DB: callers hand in loaded Cota rows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from consorcio_market.errors import ValidationError
from consorcio_market.models import Cota, CotaStatus
from consorcio_market.rates.solver import entry_percentage


@dataclass
class CompositionTotals:
    """Aggregated figures of a composition."""

    credit_amount: Decimal = Decimal("0")
    outstanding_balance: Decimal = Decimal("0")
    entry_amount: Decimal = Decimal("0")
    entry_percentage: Decimal = Decimal("0.00")
    count: int = 0


@dataclass
class CreditComposition:
    """Ordered, duplicate-free set of quotas from one administrator."""

    items: list[Cota] = field(default_factory=list)

    @property
    def administrator(self) -> str | None:
        return self.items[0].administrator if self.items else None

    @property
    def cota_ids(self) -> list[uuid.UUID]:
        return [c.id for c in self.items]

    def check_can_add(self, cota: Cota) -> str | None:
        """Return the Portuguese reason the quota cannot be added, or None."""
        if any(c.id == cota.id for c in self.items):
            return "Esta cota já está na sua composição."
        if cota.status != CotaStatus.AVAILABLE.value:
            return "Esta cota não está disponível."
        if self.items and cota.administrator != self.administrator:
            return (
                "Todas as cotas da composição devem ser da mesma administradora. "
                f'Sua composição atual é de "{self.administrator}".'
            )
        return None

    def add(self, cota: Cota) -> None:
        """Add a quota or raise ValidationError with the blocking reason."""
        reason = self.check_can_add(cota)
        if reason is not None:
            raise ValidationError(reason, cota_id=str(cota.id))
        self.items.append(cota)

    def remove(self, cota_id: uuid.UUID) -> None:
        self.items = [c for c in self.items if c.id != cota_id]

    def totals(self) -> CompositionTotals:
        """Sum credit, balance and entry; entry % is recomputed on the sums."""
        credit = sum((c.credit_amount for c in self.items), Decimal("0"))
        balance = sum((c.outstanding_balance for c in self.items), Decimal("0"))
        entry = sum((c.entry_amount for c in self.items), Decimal("0"))
        return CompositionTotals(
            credit_amount=credit,
            outstanding_balance=balance,
            entry_amount=entry,
            entry_percentage=entry_percentage(entry, credit),
            count=len(self.items),
        )
