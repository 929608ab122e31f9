"""Binance market-data tools (ticker, klines, order book, trades, exchange info)."""

import logging
from typing import Any, Dict, List, Optional

from ..providers.binance import BinanceProvider

logger = logging.getLogger(__name__)

SOURCE_NAME = "Binance"


def _trade_url(symbol: str) -> str:
    return f"https://www.binance.com/en/trade/{symbol}"


def _error(e: Exception, **context: Any) -> Dict[str, Any]:
    return {"success": False, "error": str(e) or "Unknown error", **context}


def format_klines(rows: List[Any]) -> List[Dict[str, Any]]:
    """Binance klines are positional arrays; keep the first seven columns."""
    formatted = []
    for k in rows:
        if not isinstance(k, (list, tuple)) or len(k) < 7:
            continue
        formatted.append({
            "openTime": k[0],
            "open": k[1],
            "high": k[2],
            "low": k[3],
            "close": k[4],
            "volume": k[5],
            "closeTime": k[6],
        })
    return formatted


async def binance_ticker(symbol: str, provider: Optional[BinanceProvider] = None) -> Dict[str, Any]:
    """Latest ticker price for a symbol such as BTCUSDT."""
    client = provider or BinanceProvider()
    try:
        data = await client.get_ticker_price(symbol)
        return {
            "success": True,
            "symbol": symbol,
            "price": data.get("price"),
            "source": SOURCE_NAME,
            "url": _trade_url(symbol),
        }
    except Exception as e:
        logger.error(f"Binance ticker error for {symbol}: {e}")
        return _error(e, symbol=symbol)
    finally:
        if provider is None:
            await client.close()


async def binance_klines(
    symbol: str,
    interval: str = "1d",
    limit: int = 30,
    provider: Optional[BinanceProvider] = None,
) -> Dict[str, Any]:
    client = provider or BinanceProvider()
    try:
        data = await client.get_klines(symbol, interval=interval, limit=limit)
        return {
            "success": True,
            "symbol": symbol,
            "interval": interval,
            "klines": format_klines(data if isinstance(data, list) else []),
            "source": SOURCE_NAME,
            "url": _trade_url(symbol),
        }
    except Exception as e:
        logger.error(f"Binance klines error for {symbol}: {e}")
        return _error(e, symbol=symbol, interval=interval)
    finally:
        if provider is None:
            await client.close()


async def binance_order_book(
    symbol: str,
    limit: int = 100,
    provider: Optional[BinanceProvider] = None,
) -> Dict[str, Any]:
    client = provider or BinanceProvider()
    try:
        data = await client.get_depth(symbol, limit=limit)
        return {
            "success": True,
            "symbol": symbol,
            "lastUpdateId": data.get("lastUpdateId"),
            "bids": data.get("bids", []),
            "asks": data.get("asks", []),
            "source": SOURCE_NAME,
            "url": _trade_url(symbol),
        }
    except Exception as e:
        logger.error(f"Binance order book error for {symbol}: {e}")
        return _error(e, symbol=symbol)
    finally:
        if provider is None:
            await client.close()


async def binance_recent_trades(
    symbol: str,
    limit: int = 50,
    provider: Optional[BinanceProvider] = None,
) -> Dict[str, Any]:
    client = provider or BinanceProvider()
    try:
        data = await client.get_trades(symbol, limit=limit)
        return {
            "success": True,
            "symbol": symbol,
            "trades": data,
            "source": SOURCE_NAME,
            "url": _trade_url(symbol),
        }
    except Exception as e:
        logger.error(f"Binance trades error for {symbol}: {e}")
        return _error(e, symbol=symbol)
    finally:
        if provider is None:
            await client.close()


async def binance_exchange_info(provider: Optional[BinanceProvider] = None) -> Dict[str, Any]:
    """Exchange rules and the full list of trading pairs."""
    client = provider or BinanceProvider()
    try:
        data = await client.get_exchange_info()
        return {
            "success": True,
            "symbols": data.get("symbols", []),
            "timezone": data.get("timezone"),
            "serverTime": data.get("serverTime"),
            "rateLimits": data.get("rateLimits", []),
            "exchangeFilters": data.get("exchangeFilters", []),
            "source": SOURCE_NAME,
            "url": "https://www.binance.com/en/markets",
        }
    except Exception as e:
        logger.error(f"Binance exchange info error: {e}")
        return _error(e)
    finally:
        if provider is None:
            await client.close()
