"""Order building and signing."""

from .order_builder import OrderBuilder, ROUNDING_CONFIG, RoundConfig, calculate_market_price

__all__ = ["OrderBuilder", "ROUNDING_CONFIG", "RoundConfig", "calculate_market_price"]
