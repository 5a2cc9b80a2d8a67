"""Rules engine package for the card game 28."""

__all__ = [
    "cards",
    "deck",
    "errors",
    "bidding",
    "trump",
    "state",
    "trick",
    "mechanics",
    "scoring",
    "game",
    "rules_schema",
    "service",
]
