"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Each gateway carries two complete, parallel environments (live and sandbox).
Providers receive exactly one environment at construction; `active(...)`
returns the whole set so credentials and endpoints are never mixed.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 5.0
    write: float = 5.0
    total: float = 5.0


class PaymentRetry(BaseModel):
    # retries only when the connection could not be established
    max: int = 1
    base_backoff: float = 0.2


class PaymentUrls(BaseModel):
    """Buyer-facing URLs handed to gateways; `{provider}` is filled in per gateway."""
    success: str = "http://localhost:8000/payments/success/{provider}"
    failure: str = "http://localhost:8000/payments/error"
    notify: str = "http://localhost:8000/api/v1/payments/ipn/{provider}"
    sign_in: str = "http://localhost:8000/sign-in?show_email_input=1"
    error_page: str = "http://localhost:8000/error"
    logo: Optional[str] = None

    def success_for(self, provider: str) -> str:
        return self.success.format(provider=provider)

    def notify_for(self, provider: str) -> str:
        return self.notify.format(provider=provider)


class G2APayEnvironment(BaseModel):
    token_url: str = "https://checkout.pay.g2a.com/index/createQuote"
    redirect_url: str = "https://checkout.pay.g2a.com/index/gateway"
    rest_url: str = "https://pay.g2a.com/rest/transactions"
    api_hash: Optional[str] = None
    secret: Optional[str] = None
    merchant_email: Optional[str] = None


class G2APaySettings(BaseModel):
    live: G2APayEnvironment = Field(default_factory=G2APayEnvironment)
    sandbox: G2APayEnvironment = Field(
        default_factory=lambda: G2APayEnvironment(
            token_url="https://checkout.test.pay.g2a.com/index/createQuote",
            redirect_url="https://checkout.test.pay.g2a.com/index/gateway",
            rest_url="https://www.test.pay.g2a.com/rest/transactions",
        )
    )

    def active(self, sandbox: bool) -> G2APayEnvironment:
        return self.sandbox if sandbox else self.live


class SkrillEnvironment(BaseModel):
    pay_url: str = "https://pay.skrill.com"
    refund_url: str = "https://www.skrill.com/app/refund.pl"
    email: Optional[str] = None
    gbp_email: Optional[str] = None
    eur_email: Optional[str] = None
    api_password: Optional[str] = None

    def merchant_email(self, currency: str) -> Optional[str]:
        currency = (currency or "").upper()
        if currency == "GBP" and self.gbp_email:
            return self.gbp_email
        if currency == "EUR" and self.eur_email:
            return self.eur_email
        return self.email


class SkrillSettings(BaseModel):
    live: SkrillEnvironment = Field(default_factory=SkrillEnvironment)
    # sandbox uses one test merchant email for every currency
    sandbox: SkrillEnvironment = Field(default_factory=SkrillEnvironment)
    language: str = "EN"

    def active(self, sandbox: bool) -> SkrillEnvironment:
        if not sandbox:
            return self.live
        env = self.sandbox
        return env.model_copy(update={"gbp_email": None, "eur_email": None})


class ProfitSettings(BaseModel):
    product_markup: dict[int, Decimal] = Field(
        default_factory=lambda: {1: Decimal("0.02"), 2: Decimal("0.01")}
    )
    fee_free_currencies: list[str] = Field(default_factory=lambda: ["USD", "GBP", "EUR"])
    exchange_cost_percent: Decimal = Decimal("3")


class PaymentSettings(BaseSettings):
    sandbox: Optional[bool] = Field(default=None, validation_alias="PAYMENT__SANDBOX")
    default_method: str = Field(default="G2APay", validation_alias="PAYMENT__DEFAULT_METHOD")
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    urls: PaymentUrls = Field(default_factory=PaymentUrls)

    gateway_a_aliases: list[str] = Field(default_factory=lambda: ["btc", "g2apay", "bancontact"])
    # method -> percent of quantity absorbed as processing fee (Paysafecard)
    surcharge_methods: dict[str, Decimal] = Field(default_factory=lambda: {"PSC": Decimal("10")})
    # 1 unit of currency expressed in USD
    usd_rates: dict[str, Decimal] = Field(
        default_factory=lambda: {
            "USD": Decimal("1"),
            "EUR": Decimal("1.08"),
            "GBP": Decimal("1.27"),
            "PLN": Decimal("0.25"),
            "RUB": Decimal("0.011"),
        }
    )
    profit: ProfitSettings = Field(default_factory=ProfitSettings)

    g2apay: G2APaySettings = Field(default_factory=G2APaySettings)
    skrill: SkrillSettings = Field(default_factory=SkrillSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    def sandbox_enabled(self, environment: str) -> bool:
        """Explicit PAYMENT__SANDBOX wins; otherwise local/development runs against sandboxes."""
        if self.sandbox is not None:
            return self.sandbox
        return environment.lower() in {"local", "development"}


payment_settings = PaymentSettings()
