"""
Payment method resolution.

Which methods are offered is decided by a ``PaymentSettings`` value that
the caller passes in explicitly; nothing here reads global state.  Card
payments are handed off to an external gateway, so their quote only
says *that* a redirect is required and carries the amount and the order
reference the gateway callback will be reconciled against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .enums import PAYMENT_METHOD_ORDER, PaymentMethod
from .errors import InvalidInput, NoPaymentMethodAvailable
from .fares import FareCalculator, Number


@dataclass(frozen=True)
class BankDetails:
    bank_name: str
    account_holder: str
    iban: str
    swift_code: str


@dataclass(frozen=True)
class PaymentSettings:
    cash_enabled: bool = True
    bank_transfer_enabled: bool = True
    card_enabled: bool = True
    bank_transfer_discount_percent: Decimal = Decimal("0")
    bank_details: Optional[BankDetails] = None

    def __post_init__(self):
        discount = Decimal(str(self.bank_transfer_discount_percent))
        if discount < 0 or discount >= 100:
            raise InvalidInput(
                f"Bank transfer discount must be within [0, 100), got {discount}"
            )
        object.__setattr__(self, "bank_transfer_discount_percent", discount)


@dataclass(frozen=True)
class PaymentMethodOption:
    method: PaymentMethod
    enabled: bool
    discount_percent: Decimal
    label: str
    description: str
    bank_details: Optional[BankDetails] = None


@dataclass(frozen=True)
class PaymentQuote:
    method: PaymentMethod
    base_total: Decimal
    discount_percent: Decimal
    amount: Decimal
    requires_redirect: bool = False
    order_reference: Optional[str] = None
    bank_details: Optional[BankDetails] = field(default=None, compare=False)


_LABELS: dict[PaymentMethod, tuple[str, str]] = {
    PaymentMethod.CASH: ("Cash", "Pay the driver in cash during the transfer"),
    PaymentMethod.BANK_TRANSFER: ("Bank transfer", "Pay by wire transfer to our account"),
    PaymentMethod.CARD: ("Credit card", "Pay online through the card payment gateway"),
}


class PaymentMethodResolver:
    @staticmethod
    def all_methods(settings: PaymentSettings) -> list[PaymentMethodOption]:
        enabled = {
            PaymentMethod.CASH: settings.cash_enabled,
            PaymentMethod.BANK_TRANSFER: settings.bank_transfer_enabled,
            PaymentMethod.CARD: settings.card_enabled,
        }
        options = []
        for method in PAYMENT_METHOD_ORDER:
            label, description = _LABELS[method]
            is_transfer = method is PaymentMethod.BANK_TRANSFER
            options.append(
                PaymentMethodOption(
                    method=method,
                    enabled=enabled[method],
                    discount_percent=(
                        settings.bank_transfer_discount_percent if is_transfer else Decimal("0")
                    ),
                    label=label,
                    description=description,
                    bank_details=settings.bank_details if is_transfer else None,
                )
            )
        return options

    @classmethod
    def available_methods(cls, settings: PaymentSettings) -> list[PaymentMethodOption]:
        """Enabled methods in display order (cash, bank transfer, card)."""
        return [o for o in cls.all_methods(settings) if o.enabled]

    @classmethod
    def require_available(cls, settings: PaymentSettings) -> list[PaymentMethodOption]:
        options = cls.available_methods(settings)
        if not options:
            raise NoPaymentMethodAvailable()
        return options

    @classmethod
    def find(
        cls, settings: PaymentSettings, method: PaymentMethod
    ) -> Optional[PaymentMethodOption]:
        for option in cls.available_methods(settings):
            if option.method is method:
                return option
        return None

    @staticmethod
    def price_for(option: PaymentMethodOption, base_total: Number) -> Decimal:
        return FareCalculator.compute_total(base_total, 0, option.discount_percent)

    @classmethod
    def quote(
        cls,
        option: PaymentMethodOption,
        base_total: Number,
        order_reference: Optional[str] = None,
    ) -> PaymentQuote:
        return PaymentQuote(
            method=option.method,
            base_total=Decimal(str(base_total)),
            discount_percent=option.discount_percent,
            amount=cls.price_for(option, base_total),
            requires_redirect=option.method is PaymentMethod.CARD,
            order_reference=order_reference,
            bank_details=option.bank_details,
        )
