"""
Server-Sent Events wire format.
"""

import json
from typing import Any, Dict, Optional

from ..catalog.models import Game


NO_GAMES_MESSAGE = "No games available"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "X-Accel-Buffering": "no",
}


def format_event(data: str, event: Optional[str] = None) -> str:
    """Frame one message: optional event name, data line, blank line."""
    if event:
        return f"event: {event}\ndata: {data}\n\n"
    return f"data: {data}\n\n"


def game_event(game: Game) -> str:
    return format_event(game.to_json())


def error_event(payload: Dict[str, Any]) -> str:
    return format_event(json.dumps(payload, separators=(",", ":")), event="error")


def no_games_event() -> str:
    return error_event({"message": NO_GAMES_MESSAGE})
