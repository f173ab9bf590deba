#!/usr/bin/env python3
"""Startup script for the party card rooms backend"""

import os

import uvicorn

from party_engine import __version__
from party_engine.constants import MIN_PLAYERS
from party_engine.rules import load_rules_from_env


def describe(rules) -> str:
    kinds = ", ".join(f"{kind.value} ({count}+ players)" for kind, count in MIN_PLAYERS.items())
    return (
        f"games: {kinds}; countdown {rules.countdown_seconds}s, "
        f"reconnect grace {rules.reconnect_grace_seconds}s, {rules.win_points} points to win"
    )


def main():
    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")
    # fail before binding the port if PARTY_* settings are invalid
    rules = load_rules_from_env()

    print(f"party-engine {__version__} listening on {host}:{port}")
    print(describe(rules))
    print(f"WebSocket endpoint: ws://{host}:{port}/ws")

    uvicorn.run(
        "party_engine.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )


if __name__ == "__main__":
    main()
