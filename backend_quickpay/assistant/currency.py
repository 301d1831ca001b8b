"""
Currency token normalization.

Maps free-form currency words to canonical tickers. Total: unknown tokens
pass through upper-cased.
"""

from __future__ import annotations

CURRENCY_ALIASES = {
    "eth": "ETH",
    "ether": "ETH",
    "mon": "MON",
    "usdc": "USDC",
    "dai": "DAI",
    "btc": "BTC",
}

SUPPORTED_CURRENCIES = ("ETH", "MON", "USDC", "DAI", "BTC")

# Checked in order by substring containment while awaiting a currency choice
CURRENCY_CHOICES = (
    ("eth", "ETH"),
    ("mon", "MON"),
    ("usdc", "USDC"),
    ("dai", "DAI"),
)
DEFAULT_CURRENCY = "ETH"


def normalize_currency(token: str) -> str:
    """Return the canonical ticker for token (e.g. 'ether' -> 'ETH', 'sol' -> 'SOL')."""
    cleaned = (token or "").strip()
    return CURRENCY_ALIASES.get(cleaned.lower(), cleaned.upper())


def infer_currency(text: str) -> str:
    """Pick the first currency mentioned anywhere in text; ETH when none is."""
    lowered = (text or "").lower()
    for needle, ticker in CURRENCY_CHOICES:
        if needle in lowered:
            return ticker
    return DEFAULT_CURRENCY
