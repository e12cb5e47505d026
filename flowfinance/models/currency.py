"""Currencies a wallet can be held in."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Currency(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    symbol: str


CURRENCIES: list[Currency] = sorted(
    [
        Currency(code="USD", name="United States Dollar", symbol="$"),
        Currency(code="EUR", name="Euro", symbol="€"),
        Currency(code="GBP", name="British Pound Sterling", symbol="£"),
        Currency(code="XOF", name="CFA Franc BCEAO", symbol="CFA"),
        Currency(code="XAF", name="CFA Franc BEAC", symbol="FCFA"),
        Currency(code="NGN", name="Nigerian Naira", symbol="₦"),
        Currency(code="GHS", name="Ghanaian Cedi", symbol="GH₵"),
        Currency(code="KES", name="Kenyan Shilling", symbol="KSh"),
        Currency(code="ZAR", name="South African Rand", symbol="R"),
        Currency(code="JPY", name="Japanese Yen", symbol="¥"),
        Currency(code="CNY", name="Chinese Yuan", symbol="¥"),
        Currency(code="INR", name="Indian Rupee", symbol="₹"),
        Currency(code="CAD", name="Canadian Dollar", symbol="CA$"),
        Currency(code="AUD", name="Australian Dollar", symbol="A$"),
        Currency(code="CHF", name="Swiss Franc", symbol="CHF"),
        Currency(code="BRL", name="Brazilian Real", symbol="R$"),
        Currency(code="MXN", name="Mexican Peso", symbol="MX$"),
        Currency(code="RUB", name="Russian Ruble", symbol="₽"),
        Currency(code="KRW", name="South Korean Won", symbol="₩"),
        Currency(code="TRY", name="Turkish Lira", symbol="₺"),
        Currency(code="SAR", name="Saudi Riyal", symbol="﷼"),
        Currency(code="AED", name="United Arab Emirates Dirham", symbol="د.إ"),
        Currency(code="EGP", name="Egyptian Pound", symbol="E£"),
        Currency(code="MAD", name="Moroccan Dirham", symbol="MAD"),
    ],
    key=lambda c: c.name,
)

_BY_CODE = {c.code: c for c in CURRENCIES}


def get_currency(code: str) -> Optional[Currency]:
    return _BY_CODE.get(code.strip().upper())


def currency_symbol(code: str) -> str:
    """Display symbol for a code; unknown codes are shown as-is."""
    currency = get_currency(code)
    return currency.symbol if currency else code.strip().upper()
