"""FastAPI main application for the party card rooms backend"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .manager import GameManager
from .rules import RuleConfig, load_rules_from_env
from .shuffle import CardTexts, load_card_texts
from .ws.server import WebSocketTransport, serve_connection

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def keepalive(manager: GameManager, interval: float):
    """Log the active room count periodically so idle hosts show signs of life."""
    while True:
        await asyncio.sleep(interval)
        logger.info(f"Server alive, {len(manager.registry)} rooms active")


def create_app(rules: Optional[RuleConfig] = None, card_texts: Optional[CardTexts] = None,
               **manager_options) -> FastAPI:
    rules = rules or load_rules_from_env()
    card_texts = card_texts or load_card_texts(os.getenv("PARTY_CARDS_DIR"))
    transport = WebSocketTransport()
    manager = GameManager(transport, rules=rules, card_texts=card_texts, **manager_options)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = asyncio.create_task(keepalive(manager, rules.keepalive_seconds))
        try:
            yield
        finally:
            task.cancel()

    app = FastAPI(title="Party Card Rooms API", version=__version__, lifespan=lifespan)
    app.state.manager = manager
    app.state.transport = transport

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Party Card Rooms API", "version": __version__}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", **manager.stats()}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await serve_connection(websocket, manager, transport)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
