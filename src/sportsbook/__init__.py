"""Sportsbook back-office ledger: events, dynamic odds, bets, settlement."""

__version__ = "0.1.0"
