from tickflow.connectors.polymarket.client import (
    CLOB_HOST,
    GAMMA_API_BASE,
    PolymarketApiError,
    PolymarketClient,
    PolymarketGammaClient,
    next_cursor,
    parse_markets,
)
from tickflow.connectors.polymarket.types import GammaMarket, Market, PolymarketMessage

__all__ = [
    "CLOB_HOST",
    "GAMMA_API_BASE",
    "GammaMarket",
    "Market",
    "PolymarketApiError",
    "PolymarketClient",
    "PolymarketGammaClient",
    "PolymarketMessage",
    "next_cursor",
    "parse_markets",
]
