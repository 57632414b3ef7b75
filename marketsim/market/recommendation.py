"""
Recommendation classifier.

Maps an indicator bundle and the current price to one of five recommendation
states. Rules are evaluated in priority order and the first match wins; bots
rely on these exact thresholds.
"""

from marketsim.market.models import IndicatorBundle, Recommendation


RSI_STRONG_OVERSOLD = 30.0
RSI_OVERSOLD = 40.0
RSI_OVERBOUGHT = 60.0
RSI_STRONG_OVERBOUGHT = 70.0


def classify(bundle: IndicatorBundle, current_price: float) -> Recommendation:
    """Classify a bundle into a recommendation."""
    rsi = bundle.rsi

    if rsi < RSI_STRONG_OVERSOLD and current_price <= bundle.bb_lower:
        return Recommendation.STRONG_BUY

    if (
        bundle.macd_line > bundle.macd_signal
        and current_price > bundle.sma5
        and rsi < RSI_STRONG_OVERBOUGHT
    ) or rsi < RSI_OVERSOLD:
        return Recommendation.BUY

    if rsi > RSI_STRONG_OVERBOUGHT and current_price >= bundle.bb_upper:
        return Recommendation.STRONG_SELL

    if (
        bundle.macd_line < bundle.macd_signal
        and current_price < bundle.sma5
        and rsi > RSI_STRONG_OVERSOLD
    ) or rsi > RSI_OVERBOUGHT:
        return Recommendation.SELL

    return Recommendation.HOLD
