"""Localized subscription prices by country."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Pricing:
    currency: str
    symbol: str
    annual: float
    lifetime: float
    monthly: float


_EUR = Pricing("EUR", "€", 32.99, 94.99, 4.49)

PRICING: dict[str, Pricing] = {
    "US": Pricing("USD", "$", 34.99, 99.99, 4.99),
    "GB": Pricing("GBP", "£", 27.99, 79.99, 3.99),
    **{code: _EUR for code in ("DE", "FR", "IT", "ES", "NL", "BE", "AT", "IE", "PT", "FI")},
    "CA": Pricing("CAD", "CA$", 46.99, 134.99, 6.49),
    "AU": Pricing("AUD", "A$", 54.99, 159.99, 7.49),
    "NZ": Pricing("NZD", "NZ$", 57.99, 169.99, 7.99),
    # Whole-unit currencies
    "JP": Pricing("JPY", "¥", 4900, 14900, 680),
    "IN": Pricing("INR", "₹", 1499, 4499, 199),
    "BR": Pricing("BRL", "R$", 89.90, 249.90, 12.90),
    "MX": Pricing("MXN", "MX$", 449, 1299, 64),
}

DEFAULT_PRICING = PRICING["US"]


def pricing_for(country: str | None) -> Pricing:
    """Look up a country's prices, falling back to USD."""
    if not country:
        return DEFAULT_PRICING
    return PRICING.get(country.strip().upper(), DEFAULT_PRICING)


def pricing_payload(country: str) -> dict[str, object]:
    """The cookie/template shape: ``{country, currency, symbol, annual, lifetime, monthly}``."""
    return {"country": country, **asdict(pricing_for(country))}
