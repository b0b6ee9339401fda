# pricecache/coins.py
# Purpose: Map what users type ("BTC", "Bitcoin", "xbt") to CoinGecko coin ids.
# Pitfalls: Unknown input falls back to a lower-cased, space-free id; CoinGecko decides
#           whether it exists.

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class Coin:
    id: str
    name: str
    symbol: str
    aliases: tuple[str, ...] = ()


KNOWN_COINS: tuple[Coin, ...] = (
    Coin("bitcoin", "Bitcoin", "BTC", ("btc", "bitcoin", "xbt")),
    Coin("ethereum", "Ethereum", "ETH", ("eth", "ethereum", "ether")),
    Coin("solana", "Solana", "SOL", ("sol", "solana")),
    Coin("cardano", "Cardano", "ADA", ("ada", "cardano")),
    Coin("polkadot", "Polkadot", "DOT", ("dot", "polkadot")),
    Coin("ripple", "Ripple", "XRP", ("xrp", "ripple")),
    Coin("binancecoin", "BNB", "BNB", ("bnb", "binance", "binance coin")),
    Coin("dogecoin", "Dogecoin", "DOGE", ("doge", "dogecoin")),
    Coin("avalanche-2", "Avalanche", "AVAX", ("avax", "avalanche")),
    Coin("chainlink", "Chainlink", "LINK", ("link", "chainlink")),
    Coin("polygon", "Polygon", "MATIC", ("matic", "polygon")),
    Coin("uniswap", "Uniswap", "UNI", ("uni", "uniswap")),
    Coin("litecoin", "Litecoin", "LTC", ("ltc", "litecoin")),
    Coin("stellar", "Stellar", "XLM", ("xlm", "stellar")),
    Coin("vechain", "VeChain", "VET", ("vet", "vechain")),
    Coin("filecoin", "Filecoin", "FIL", ("fil", "filecoin")),
    Coin("cosmos", "Cosmos", "ATOM", ("atom", "cosmos")),
    Coin("monero", "Monero", "XMR", ("xmr", "monero")),
    Coin("algorand", "Algorand", "ALGO", ("algo", "algorand")),
    Coin("tezos", "Tezos", "XTZ", ("xtz", "tezos")),
)

_WS = re.compile(r"\s+")


def find_coin_id(user_input: str | None) -> str | None:
    """Resolve an id, symbol, name or alias to a known coin id; partial matches last."""
    text = (user_input or "").strip().lower()
    if not text:
        return None

    for match in (
        lambda c: c.id == text,
        lambda c: c.symbol.lower() == text,
        lambda c: c.name.lower() == text,
        lambda c: text in c.aliases,
        lambda c: text in c.name.lower()
        or text in c.symbol.lower()
        or any(text in alias for alias in c.aliases),
    ):
        for coin in KNOWN_COINS:
            if match(coin):
                return coin.id
    return None


def normalize_coin_id(raw: str | None) -> str:
    """Known coins resolve to their id; anything else is lower-cased with whitespace removed."""
    exact = _exact_coin_id(raw)
    if exact:
        return exact
    return _WS.sub("", (raw or "").lower())


def _exact_coin_id(raw: str | None) -> str | None:
    text = (raw or "").strip().lower()
    for coin in KNOWN_COINS:
        if text in (coin.id, coin.symbol.lower(), coin.name.lower()) or text in coin.aliases:
            return coin.id
    return None


def available_coins() -> list[dict[str, str]]:
    return [{"id": c.id, "name": c.name, "symbol": c.symbol} for c in KNOWN_COINS]
