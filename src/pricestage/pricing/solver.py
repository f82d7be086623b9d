"""Sell price calculation: cost-plus baseline and margin-targeted solving."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal

from ..config import Settings, settings as default_settings
from . import InvalidMargin, UnsolvableMargin
from .fees import HUNDRED, ZERO, FeeModel, money, to_decimal

ROUNDING_POLICIES = ("cents", "charm")
BASELINE_POLICIES = ("markup", "sell_price_per_gram")

_CHARM = Decimal("0.99")


def round_price(raw, rounding: str = "cents") -> Decimal:
    """Round a raw price for listing.

    ``cents`` rounds half-up to the penny; ``charm`` drops to the pound and
    adds .99 (494.71 -> 494.99, 355.50 -> 355.99).
    """
    raw = to_decimal(raw)
    if raw <= 0:
        return ZERO
    if rounding == "cents":
        return money(raw)
    if rounding == "charm":
        return raw.to_integral_value(rounding=ROUND_FLOOR) + _CHARM
    raise ValueError(f"Unknown rounding policy: {rounding}")


def baseline_price(
    material_cost,
    postage_cost,
    *,
    policy: str = "markup",
    markup_pct=100,
    weight_grams=None,
    sell_price_per_gram=None,
    rounding: str = "cents",
) -> Decimal:
    """Price used when no margin modifier is set.

    ``markup``: (material + postage) * (1 + markup/100).
    ``sell_price_per_gram``: weight * the material's per-gram sell price.
    """
    if policy == "markup":
        cost = to_decimal(material_cost) + to_decimal(postage_cost)
        raw = cost * (Decimal("1") + to_decimal(markup_pct) / HUNDRED)
    elif policy == "sell_price_per_gram":
        raw = to_decimal(weight_grams) * to_decimal(sell_price_per_gram)
    else:
        raise ValueError(f"Unknown baseline policy: {policy}")
    return round_price(raw, rounding)


def validate_margin(margin_pct, fee_model: FeeModel, max_margin_pct=70) -> Decimal:
    """Check a requested margin at the edge, before any record is touched.

    The margin is rounded to hundredths first, the precision it is stored at,
    so a price solved from it can be re-derived from the stored record.
    """
    margin = money(margin_pct)
    if margin < 0 or margin > to_decimal(max_margin_pct):
        raise InvalidMargin(
            f"Margin {margin}% outside allowed range 0-{max_margin_pct}%", margin
        )
    _denominator(margin, fee_model)
    return margin


def _denominator(margin: Decimal, fee_model: FeeModel) -> Decimal:
    denominator = fee_model.fee_multiplier - margin / HUNDRED
    if denominator <= 0:
        raise UnsolvableMargin(
            f"Margin {margin}% is not reachable: fees leave at most "
            f"{fee_model.fee_multiplier * HUNDRED}% of the price",
            margin,
        )
    return denominator


def solve_margin_price(
    material_cost,
    postage_cost,
    margin_pct,
    fee_model: FeeModel,
) -> Decimal:
    """Reverse-solve the price whose net margin after all fees (ads included)
    equals ``margin_pct``.

    Always rounded to the cent: charm rounding would move the margin away
    from the one asked for.

    price - material - postage - price*(tx + pay + ad) - fixed = price * m
    => price = (material + fixed + postage) / (1 - tx - pay - ad - m)
    """
    margin = to_decimal(margin_pct)
    denominator = _denominator(margin, fee_model)
    fixed_costs = to_decimal(material_cost) + fee_model.payment_fixed_fee + to_decimal(postage_cost)
    return round_price(fixed_costs / denominator)


def price_for(
    material_cost,
    postage_cost,
    base_price,
    margin_pct,
    fee_model: FeeModel,
) -> Decimal:
    """The staged price: the baseline when margin is 0, else the solved price."""
    margin = to_decimal(margin_pct)
    if margin == 0:
        return to_decimal(base_price)
    return solve_margin_price(material_cost, postage_cost, margin, fee_model)


@dataclass(frozen=True)
class PricingPolicy:
    """Everything that decides a price besides the cost inputs themselves."""

    fee_model: FeeModel = field(default_factory=FeeModel)
    material_cost_basis: str = "cost_per_gram"
    baseline_policy: str = "markup"
    baseline_markup_pct: Decimal = Decimal("100")
    rounding: str = "cents"
    max_margin_pct: Decimal = Decimal("70")
    recalc_approved: str = "recalculate"

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> PricingPolicy:
        cfg = cfg or default_settings
        return cls(
            fee_model=FeeModel.from_settings(cfg),
            material_cost_basis=cfg.pricing_material_cost_basis,
            baseline_policy=cfg.pricing_baseline_policy,
            baseline_markup_pct=to_decimal(cfg.pricing_baseline_markup_pct),
            rounding=cfg.pricing_rounding,
            max_margin_pct=to_decimal(cfg.pricing_max_margin_pct),
            recalc_approved=cfg.pricing_recalc_approved,
        )

    @property
    def needs_sell_price(self) -> bool:
        return (
            self.baseline_policy == "sell_price_per_gram"
            or self.material_cost_basis == "sell_price_per_gram"
        )

    def baseline(self, inputs) -> Decimal:
        return baseline_price(
            inputs.material_cost,
            inputs.postage_cost,
            policy=self.baseline_policy,
            markup_pct=self.baseline_markup_pct,
            weight_grams=inputs.weight_grams,
            sell_price_per_gram=inputs.sell_price_per_gram,
            rounding=self.rounding,
        )

    def validate_margin(self, margin_pct) -> Decimal:
        return validate_margin(margin_pct, self.fee_model, self.max_margin_pct)

    def price(self, material_cost, postage_cost, base_price, margin_pct) -> Decimal:
        return price_for(material_cost, postage_cost, base_price, margin_pct, self.fee_model)
