from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    host: str = "127.0.0.1"
    port: int = 8002

    database_url: str = "sqlite:///./pricestage.db"

    # Etsy Open API v3 (tokens are obtained out of band)
    etsy_api_base: str = "https://openapi.etsy.com/v3"
    etsy_client_id: str = ""
    etsy_client_secret: str = ""
    etsy_access_token: str = ""
    etsy_request_timeout: float = 30.0

    @property
    def etsy_enabled(self) -> bool:
        return bool(self.etsy_client_id and self.etsy_access_token)

    # Etsy fees
    fee_transaction_rate: float = 0.065   # 6.5% of sale price
    fee_payment_rate: float = 0.04        # 4% of sale price
    fee_payment_fixed: float = 0.20       # plus £0.20 per order
    fee_ad_rate: float = 0.15             # offsite ads
    fee_listing: float = 0.17             # per listing, informational only

    # Pricing
    pricing_material_cost_basis: Literal["cost_per_gram", "sell_price_per_gram"] = "cost_per_gram"
    pricing_baseline_policy: Literal["markup", "sell_price_per_gram"] = "markup"
    pricing_baseline_markup_pct: float = 100.0
    pricing_rounding: Literal["cents", "charm"] = "cents"  # charm = .99 endings on the baseline
    pricing_max_margin_pct: float = 70.0
    pricing_recalc_approved: Literal["recalculate", "preserve"] = "recalculate"

    # Auth
    api_key: str = ""  # Set to enable API key auth; empty = no auth

    # Log
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
