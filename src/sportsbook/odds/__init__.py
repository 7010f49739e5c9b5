"""Dynamic odds: exposure-driven repricing and odds helpers."""

from sportsbook.odds.engine import OddsConfig, OddsEngine, format_odds, implied_probability

__all__ = ["OddsConfig", "OddsEngine", "format_odds", "implied_probability"]
