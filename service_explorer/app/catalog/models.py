"""
Catalog data model.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, field_validator


class Game(BaseModel):
    """A free-to-play game record as published by the catalog provider."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    title: str = ""
    thumbnail: str = ""
    short_description: str = ""
    game_url: str = ""
    genre: str = ""
    platform: str = ""
    publisher: str = ""
    developer: str = ""
    release_date: str = ""

    @field_validator(
        "title", "thumbnail", "short_description", "game_url", "genre",
        "platform", "publisher", "developer", "release_date",
        mode="before",
    )
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_json(self) -> str:
        """Compact JSON with exactly the published field set."""
        return self.model_dump_json()


def parse_games(payload: List[Dict[str, Any]]) -> List[Game]:
    """Build games from a decoded upstream payload, dropping duplicate ids.

    Raises pydantic.ValidationError when a record is malformed.
    """
    games: List[Game] = []
    seen = set()
    for record in payload:
        game = Game.model_validate(record)
        if game.id in seen:
            continue
        seen.add(game.id)
        games.append(game)
    return games
