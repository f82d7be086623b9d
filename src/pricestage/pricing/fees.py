"""Etsy fee model: per-price fee breakdown and profit figures."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..config import Settings, settings as default_settings

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Coerce floats/ints/strings to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    return Decimal(str(value))


def money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeBreakdown:
    transaction_fee: Decimal
    payment_fee: Decimal
    ad_fee: Decimal
    listing_fee: Decimal
    total_fees: Decimal


@dataclass(frozen=True)
class Profit:
    profit_no_ads: Decimal
    profit_with_ads: Decimal
    margin_no_ads_pct: Decimal
    margin_with_ads_pct: Decimal


@dataclass(frozen=True)
class FeeModel:
    transaction_rate: Decimal = Decimal("0.065")
    payment_rate: Decimal = Decimal("0.04")
    payment_fixed_fee: Decimal = Decimal("0.20")
    ad_rate: Decimal = Decimal("0.15")
    listing_fee: Decimal = Decimal("0.17")

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> FeeModel:
        cfg = cfg or default_settings
        return cls(
            transaction_rate=to_decimal(cfg.fee_transaction_rate),
            payment_rate=to_decimal(cfg.fee_payment_rate),
            payment_fixed_fee=to_decimal(cfg.fee_payment_fixed),
            ad_rate=to_decimal(cfg.fee_ad_rate),
            listing_fee=to_decimal(cfg.fee_listing),
        )

    @property
    def fee_multiplier(self) -> Decimal:
        """Share of the sale price left after percentage fees (ads included)."""
        return Decimal("1") - self.transaction_rate - self.payment_rate - self.ad_rate

    def fees_for(self, price, with_ads: bool = True) -> FeeBreakdown:
        """Fee breakdown at ``price``; each fee rounded to the penny.

        The listing fee is charged per listing, not per sale, so it is
        reported but left out of ``total_fees``.
        """
        price = to_decimal(price)
        transaction = money(price * self.transaction_rate)
        payment = money(price * self.payment_rate + self.payment_fixed_fee)
        ad = money(price * self.ad_rate) if with_ads else ZERO
        return FeeBreakdown(
            transaction_fee=transaction,
            payment_fee=payment,
            ad_fee=ad,
            listing_fee=money(self.listing_fee),
            total_fees=transaction + payment + ad,
        )

    def profit_for(self, price, material_cost, postage_cost) -> Profit:
        price = to_decimal(price)
        fees = self.fees_for(price)
        profit_no_ads = (
            price
            - to_decimal(material_cost)
            - fees.transaction_fee
            - fees.payment_fee
            - to_decimal(postage_cost)
        )
        profit_with_ads = profit_no_ads - fees.ad_fee
        return Profit(
            profit_no_ads=money(profit_no_ads),
            profit_with_ads=money(profit_with_ads),
            margin_no_ads_pct=margin_pct(profit_no_ads, price),
            margin_with_ads_pct=margin_pct(profit_with_ads, price),
        )


def margin_pct(profit, price) -> Decimal:
    """Profit as a percentage of price; 0 for non-positive prices."""
    price = to_decimal(price)
    if price <= 0:
        return ZERO
    return money(to_decimal(profit) / price * HUNDRED)
