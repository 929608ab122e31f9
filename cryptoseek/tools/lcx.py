"""
LCX exchange tools.

Kline charts, order book depth, tickers, pairs and recent trades from
https://exchange.lcx.com. Every tool returns ``{"success": True, ...}`` or
``{"success": False, "error": ...}`` and never raises.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.aggregation.normalizer import (
    CANDLE_ALIASES,
    TICKER_ALIASES,
    normalize_fields,
    parse_timestamp,
    to_float,
)
from ..providers.lcx import LCXProvider

logger = logging.getLogger(__name__)

SOURCE_NAME = "LCX Exchange"
DEFAULT_KLINE_WINDOW_SECONDS = 30 * 24 * 60 * 60
SIMILAR_PAIRS_LIMIT = 5


def _pair_url(pair: str) -> str:
    return f"https://exchange.lcx.com/trading/{pair}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _unwrap(payload: Any) -> Any:
    """LCX wraps most payloads in ``{"data": ...}``; some endpoints do not."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def _iso_from_seconds(value: Any) -> Optional[str]:
    parsed = parse_timestamp(value)
    return parsed.isoformat() if parsed else None


def format_candles(rows: List[Any]) -> List[Dict[str, Any]]:
    formatted = []
    for candle in rows:
        if not isinstance(candle, dict):
            continue
        fields = normalize_fields(candle, CANDLE_ALIASES)
        ts = fields["timestamp"]
        ts_ms = int(to_float(ts) * 1000) if ts is not None else None
        formatted.append({
            "timestamp": ts_ms,
            "date": _iso_from_seconds(ts),
            "open": fields["open"],
            "high": fields["high"],
            "low": fields["low"],
            "close": fields["close"],
            "volume": fields["volume"],
        })
    return formatted


def format_ticker(raw: Any) -> Dict[str, Any]:
    fields = normalize_fields(raw if isinstance(raw, dict) else {}, TICKER_ALIASES)
    fields["timestamp"] = _now_iso()
    return fields


def summarize_order_book(buy: List[Any], sell: List[Any]) -> Dict[str, Any]:
    """Price/amount rows into bids, asks, depth and spread."""

    def rows(levels: List[Any]) -> List[Dict[str, float]]:
        out = []
        for level in levels:
            if not isinstance(level, (list, tuple)) or len(level) < 2:
                continue
            price, amount = to_float(level[0]), to_float(level[1])
            out.append({"price": price, "amount": amount, "total": price * amount})
        return out

    bids, asks = rows(buy), rows(sell)
    best_bid = bids[0]["price"] if bids else 0.0
    best_ask = asks[0]["price"] if asks else 0.0
    spread = best_ask - best_bid
    return {
        "bids": bids,
        "asks": asks,
        "bidDepth": sum(b["amount"] for b in bids),
        "askDepth": sum(a["amount"] for a in asks),
        "spread": spread,
        "spreadPercentage": (spread / best_bid) * 100 if best_bid > 0 else 0.0,
        "bestBid": best_bid,
        "bestAsk": best_ask,
    }


def summarize_trades(raw_trades: List[Any]) -> Dict[str, Any]:
    trades = []
    for trade in raw_trades:
        if not isinstance(trade, dict):
            continue
        price, amount = to_float(trade.get("price")), to_float(trade.get("amount"))
        trades.append({
            "id": trade.get("id"),
            "price": price,
            "amount": amount,
            "side": trade.get("side"),
            "timestamp": trade.get("timestamp"),
            "date": _iso_from_seconds(trade.get("timestamp")),
            "total": price * amount,
        })

    total_volume = sum(t["amount"] for t in trades)
    buys = [t for t in trades if str(t["side"]).upper() == "BUY"]
    sells = [t for t in trades if str(t["side"]).upper() == "SELL"]
    return {
        "trades": trades,
        "statistics": {
            "totalTrades": len(trades),
            "totalVolume": total_volume,
            "averagePrice": sum(t["total"] for t in trades) / total_volume if total_volume else 0.0,
            "buyTrades": len(buys),
            "sellTrades": len(sells),
            "buyVolume": sum(t["amount"] for t in buys),
            "sellVolume": sum(t["amount"] for t in sells),
        },
    }


async def _similar_pairs(provider: LCXProvider, pair: str) -> List[str]:
    base = pair.split("/")[0]
    available = _unwrap(await provider.get_pairs()) or []
    return [
        p["pair"] for p in available
        if isinstance(p, dict) and p.get("pair") and base in p["pair"]
    ][:SIMILAR_PAIRS_LIMIT]


async def lcx_kline(
    pair: str,
    resolution: str = "1D",
    from_ts: Optional[int] = None,
    to_ts: Optional[int] = None,
    provider: Optional[LCXProvider] = None,
) -> Dict[str, Any]:
    """OHLCV candles for charting; the default window is the last 30 days."""
    client = provider or LCXProvider()
    logger.info(f"Fetching LCX kline data for {pair} resolution {resolution}")
    try:
        now = int(time.time())
        start = from_ts or now - DEFAULT_KLINE_WINDOW_SECONDS
        end = to_ts or now

        payload = await client.get_kline(pair.replace("/", "-"), resolution, start, end)
        rows = _unwrap(payload)

        if not isinstance(rows, list) or not rows:
            return {
                "success": False,
                "error": "No kline data available for this pair and time range",
                "pair": pair,
                "resolution": resolution,
                "suggestion": (
                    "Try using lcx_ticker for current price data instead. The LCX kline API "
                    "may have limited historical data availability."
                ),
                "alternative": "Use lcx_ticker tool for current price information",
            }

        candles = format_candles(rows)
        return {
            "success": True,
            "pair": pair,
            "resolution": resolution,
            "chart": {
                "title": f"{pair} Price Chart ({resolution})",
                "type": "candlestick",
                "data": candles,
                "elements": candles,
                "x_scale": "datetime",
                "y_scale": "linear",
                "x_label": "Time",
                "y_label": "Price",
            },
            "source": SOURCE_NAME,
            "url": _pair_url(pair),
            "dataPoints": len(candles),
        }
    except Exception as e:
        logger.error(f"LCX kline error for {pair}: {e}")
        try:
            similar = await _similar_pairs(client, pair)
        except Exception as pairs_error:
            logger.warning(f"LCX pairs lookup failed: {pairs_error}")
            return {
                "success": False,
                "error": str(e) or "Unknown error occurred",
                "pair": pair,
                "resolution": resolution,
                "suggestion": "Unable to fetch available pairs for suggestions",
            }
        return {
            "success": False,
            "error": str(e) or "Unknown error occurred",
            "pair": pair,
            "resolution": resolution,
            "suggestion": f"Pair {pair} not found. Available similar pairs: {', '.join(similar)}",
            "availablePairs": similar,
        }
    finally:
        if provider is None:
            await client.close()


async def lcx_order_book(pair: str, provider: Optional[LCXProvider] = None) -> Dict[str, Any]:
    client = provider or LCXProvider()
    try:
        book = _unwrap(await client.get_book(pair)) or {}
        return {
            "success": True,
            "pair": pair,
            "orderBook": summarize_order_book(book.get("buy", []), book.get("sell", [])),
            "source": SOURCE_NAME,
            "url": _pair_url(pair),
            "timestamp": _now_iso(),
        }
    except Exception as e:
        logger.error(f"LCX order book error for {pair}: {e}")
        return {"success": False, "error": str(e) or "Unknown error occurred", "pair": pair}
    finally:
        if provider is None:
            await client.close()


async def lcx_ticker(pair: str, provider: Optional[LCXProvider] = None) -> Dict[str, Any]:
    client = provider or LCXProvider()
    try:
        raw = _unwrap(await client.get_ticker(pair))
        return {
            "success": True,
            "pair": pair,
            "ticker": format_ticker(raw),
            "source": SOURCE_NAME,
            "url": _pair_url(pair),
        }
    except Exception as e:
        logger.error(f"LCX ticker error for {pair}: {e}")
        return {"success": False, "error": str(e) or "Unknown error occurred", "pair": pair}
    finally:
        if provider is None:
            await client.close()


async def lcx_pairs(provider: Optional[LCXProvider] = None) -> Dict[str, Any]:
    """All trading pairs, grouped by base currency."""
    client = provider or LCXProvider()
    try:
        pairs = _unwrap(await client.get_pairs()) or []
        by_base: Dict[str, List[Dict[str, Any]]] = {}
        for p in pairs:
            if not isinstance(p, dict):
                continue
            by_base.setdefault(p.get("base") or "unknown", []).append({
                "pair": p.get("pair"),
                "base": p.get("base"),
                "quote": p.get("quote"),
                "status": p.get("status"),
            })
        return {
            "success": True,
            "pairs": pairs,
            "pairsByBase": by_base,
            "totalPairs": len(pairs),
            "source": SOURCE_NAME,
            "url": "https://exchange.lcx.com/trading",
            "timestamp": _now_iso(),
        }
    except Exception as e:
        logger.error(f"LCX pairs error: {e}")
        return {"success": False, "error": str(e) or "Unknown error occurred"}
    finally:
        if provider is None:
            await client.close()


async def lcx_pair(pair: str, provider: Optional[LCXProvider] = None) -> Dict[str, Any]:
    client = provider or LCXProvider()
    try:
        info = _unwrap(await client.get_pair(pair))
        return {
            "success": True,
            "pair": pair,
            "pairInfo": info,
            "source": SOURCE_NAME,
            "url": _pair_url(pair),
            "timestamp": _now_iso(),
        }
    except Exception as e:
        logger.error(f"LCX pair error for {pair}: {e}")
        return {"success": False, "error": str(e) or "Unknown error occurred", "pair": pair}
    finally:
        if provider is None:
            await client.close()


async def lcx_tickers(provider: Optional[LCXProvider] = None) -> Dict[str, Any]:
    client = provider or LCXProvider()
    try:
        tickers = _unwrap(await client.get_tickers())
        if tickers is None:
            tickers = []
        return {
            "success": True,
            "tickers": tickers,
            "totalTickers": len(tickers),
            "source": SOURCE_NAME,
            "url": "https://exchange.lcx.com/trading",
            "timestamp": _now_iso(),
        }
    except Exception as e:
        logger.error(f"LCX tickers error: {e}")
        return {"success": False, "error": str(e) or "Unknown error occurred"}
    finally:
        if provider is None:
            await client.close()


async def lcx_trades(
    pair: str,
    limit: int = 100,
    provider: Optional[LCXProvider] = None,
) -> Dict[str, Any]:
    """Recent trades with volume and buy/sell statistics."""
    client = provider or LCXProvider()
    try:
        raw = _unwrap(await client.get_trades(pair, limit=limit)) or []
        summary = summarize_trades(raw)
        return {
            "success": True,
            "pair": pair,
            "trades": summary["trades"],
            "statistics": summary["statistics"],
            "source": SOURCE_NAME,
            "url": _pair_url(pair),
            "timestamp": _now_iso(),
        }
    except Exception as e:
        logger.error(f"LCX trades error for {pair}: {e}")
        return {"success": False, "error": str(e) or "Unknown error occurred", "pair": pair}
    finally:
        if provider is None:
            await client.close()
