"""
LCX price prediction.

A simple technical estimate from the current LCX ticker: trend from the 24h
change, volatility from the 24h range, scaled by the requested timeframe.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.aggregation.normalizer import TICKER_ALIASES, normalize_fields, to_float
from ..providers.lcx import LCXProvider

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ["technical"]

TIMEFRAME_MULTIPLIERS: Dict[str, float] = {
    "1h": 0.1,
    "4h": 0.3,
    "1d": 1.0,
    "1w": 3.0,
    "1m": 10.0,
}

CONFIDENCE = 0.6

DISCLAIMER = (
    "This is a prediction based on technical analysis and should not be considered "
    "financial advice. Always do your own research."
)


def timeframe_multiplier(timeframe: str) -> float:
    return TIMEFRAME_MULTIPLIERS.get(timeframe, 1.0)


def technical_prediction(market: Dict[str, Any], timeframe: str) -> Dict[str, Any]:
    """Estimate a future price from ``lastPrice``, ``change``, ``high``, ``low``.

    Raises ValueError when there is no usable current price.
    """
    price = to_float(market.get("lastPrice"))
    if price <= 0:
        raise ValueError("Current price unavailable")

    change = to_float(market.get("change"))
    high = to_float(market.get("high"), price)
    low = to_float(market.get("low"), price)
    volume = market.get("volume")

    trend = "bullish" if change > 0 else "bearish"
    volatility = (high - low) / price

    direction = 1 if trend == "bullish" else -1
    raw_estimate = price * (1 + direction * volatility * 0.1)
    estimate = price + (raw_estimate - price) * timeframe_multiplier(timeframe)

    factors: List[str] = [
        f"24h change: {change}%",
        f"Volume: {volume}",
        f"Volatility: {volatility * 100:.2f}%",
        f"Trend: {trend}",
    ]
    return {
        "estimatedPrice": round(estimate, 2),
        "confidence": CONFIDENCE,
        "trend": trend,
        "support": round(low * 0.98, 2),
        "resistance": round(high * 1.02, 2),
        "factors": factors,
    }


async def lcx_price_prediction(
    pair: str,
    timeframe: str = "1d",
    method: str = "technical",
    provider: Optional[LCXProvider] = None,
) -> Dict[str, Any]:
    """Predict a price for ``pair`` over ``timeframe`` (1h, 4h, 1d, 1w, 1m)."""
    client = provider or LCXProvider()
    used_method = method if method in SUPPORTED_METHODS else "technical"
    if used_method != method:
        logger.info(f"Prediction method '{method}' unavailable, using technical analysis")

    try:
        payload = await client.get_ticker(pair)
        raw = payload.get("data", payload) if isinstance(payload, dict) else {}
        market = normalize_fields(raw if isinstance(raw, dict) else {}, TICKER_ALIASES)

        prediction = technical_prediction(market, timeframe)
        return {
            "success": True,
            "pair": pair,
            "timeframe": timeframe,
            "method": used_method,
            "requestedMethod": method,
            "currentPrice": market.get("lastPrice"),
            "prediction": prediction,
            "disclaimer": DISCLAIMER,
            "source": "LCX Exchange + Technical Analysis",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    except Exception as e:
        logger.error(f"Price prediction error for {pair}: {e}")
        return {
            "success": False,
            "error": str(e) or "Unknown error occurred",
            "pair": pair,
            "timeframe": timeframe,
            "method": used_method,
            "suggestion": "Try using lcx_ticker for current price data instead.",
        }
    finally:
        if provider is None:
            await client.close()
