"""Tests for the Etsy fee model."""

from decimal import Decimal

from pricestage.config import Settings
from pricestage.pricing.fees import FeeModel, margin_pct, money


class TestMoney:
    def test_rounds_half_up(self):
        assert money("1.565") == Decimal("1.57")
        assert money("1.564") == Decimal("1.56")

    def test_float_input_has_no_binary_noise(self):
        assert money(0.1 + 0.2) == Decimal("0.30")

    def test_none_is_zero(self):
        assert money(None) == Decimal("0.00")


class TestFeeModel:
    def test_default_multiplier(self):
        assert FeeModel().fee_multiplier == Decimal("0.745")

    def test_breakdown_with_ads(self):
        fees = FeeModel().fees_for(Decimal("24.04"))
        assert fees.transaction_fee == Decimal("1.56")
        assert fees.payment_fee == Decimal("1.16")
        assert fees.ad_fee == Decimal("3.61")
        assert fees.listing_fee == Decimal("0.17")
        # Listing fee is per listing, not per sale
        assert fees.total_fees == Decimal("6.33")

    def test_breakdown_without_ads(self):
        fees = FeeModel().fees_for(Decimal("24.04"), with_ads=False)
        assert fees.ad_fee == Decimal("0")
        assert fees.total_fees == Decimal("2.72")

    def test_profit(self):
        profit = FeeModel().profit_for(Decimal("24.04"), Decimal("8.50"), Decimal("2.00"))
        assert profit.profit_no_ads == Decimal("10.82")
        assert profit.profit_with_ads == Decimal("7.21")
        assert profit.margin_with_ads_pct == Decimal("29.99")
        assert profit.margin_no_ads_pct == Decimal("45.01")

    def test_negative_profit(self):
        profit = FeeModel().profit_for(Decimal("5.00"), Decimal("8.50"), Decimal("2.00"))
        assert profit.profit_with_ads < 0
        assert profit.margin_with_ads_pct < 0

    def test_from_settings(self):
        cfg = Settings(fee_transaction_rate=0.05, fee_ad_rate=0.12, _env_file=None)
        model = FeeModel.from_settings(cfg)
        assert model.transaction_rate == Decimal("0.05")
        assert model.ad_rate == Decimal("0.12")
        assert model.fee_multiplier == Decimal("0.79")


class TestMarginPct:
    def test_zero_price(self):
        assert margin_pct(Decimal("5"), Decimal("0")) == Decimal("0")

    def test_basic(self):
        assert margin_pct(Decimal("3"), Decimal("12")) == Decimal("25.00")
