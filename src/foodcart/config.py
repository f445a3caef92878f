"""Runtime configuration read from the environment.

Variables:
    FOODCART_ENV                 development | test | staging | production
    LOG_LEVEL                    overrides the per-environment default
    FOODCART_LOG_DIR             directory for rotating log files (console only when unset)
    FOODCART_TAX_RATE            sales tax rate applied to the subtotal
    FOODCART_BASE_DELIVERY_FEE   platform floor for the delivery fee
"""

import os
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from foodcart.cart.pricing import BASE_DELIVERY_FEE, TAX_RATE, PricingPolicy
from foodcart.utils.logging import configure_logging, get_environment, get_log_level


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    env: str = "development"
    log_level: str = "INFO"
    log_dir: str | None = None
    tax_rate: Decimal = Field(default=TAX_RATE, ge=0, le=1)
    base_delivery_fee: Decimal = Field(default=BASE_DELIVERY_FEE, ge=0)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            env=get_environment(),
            log_level=get_log_level(),
            log_dir=os.getenv("FOODCART_LOG_DIR") or None,
            tax_rate=os.getenv("FOODCART_TAX_RATE", str(TAX_RATE)),
            base_delivery_fee=os.getenv("FOODCART_BASE_DELIVERY_FEE", str(BASE_DELIVERY_FEE)),
        )

    def pricing_policy(self) -> PricingPolicy:
        return PricingPolicy(tax_rate=self.tax_rate, base_delivery_fee=self.base_delivery_fee)

    def configure_logging(self) -> None:
        configure_logging(level=self.log_level, log_dir=self.log_dir, env=self.env)
