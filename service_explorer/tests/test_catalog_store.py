"""
Unit tests for the catalog store and game model.
"""

import json
import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from pydantic import ValidationError

from service_explorer.app.catalog.models import Game, parse_games
from service_explorer.app.catalog.store import CatalogStore
from shared.test_helpers import GameDataFactory, PUBLISHED_GAME_FIELDS


def make_games(*ids):
    return parse_games(GameDataFactory.create_game_records(0, ids=list(ids)))


class TestGameModel:
    """Test cases for the Game record."""

    def test_json_has_exactly_published_fields(self):
        """Serialized games carry the published field set only."""
        game = Game.model_validate(GameDataFactory.create_game_record(42))

        data = json.loads(game.to_json())

        assert set(data) == PUBLISHED_GAME_FIELDS
        assert data["id"] == 42
        assert data["title"] == "Game 42"

    def test_game_is_immutable(self):
        """Games are frozen value objects."""
        game = Game.model_validate(GameDataFactory.create_game_record(1))

        with pytest.raises(ValidationError):
            game.title = "changed"

    def test_missing_and_null_strings_default_to_empty(self):
        """Missing or null string fields decode as empty strings."""
        game = Game.model_validate({"id": 7, "title": None})

        assert game.title == ""
        assert game.publisher == ""

    def test_missing_id_is_rejected(self):
        """A record without an id is malformed."""
        with pytest.raises(ValidationError):
            Game.model_validate({"title": "No id"})

    def test_parse_games_drops_duplicate_ids(self):
        """The first record wins when ids repeat."""
        payload = [
            GameDataFactory.create_game_record(1, title="first"),
            GameDataFactory.create_game_record(2),
            GameDataFactory.create_game_record(1, title="second"),
        ]

        games = parse_games(payload)

        assert [g.id for g in games] == [1, 2]
        assert games[0].title == "first"


class TestCatalogStore:
    """Test cases for CatalogStore."""

    @pytest.fixture
    def store(self):
        """Create an empty store with a seeded random source."""
        return CatalogStore(rng=random.Random(1234))

    def test_empty_store_samples_nothing(self, store):
        """An empty catalog reports not found."""
        for _ in range(10):
            game, found = store.sample_random()
            assert found is False
            assert game is None
        assert store.count() == 0

    def test_sample_returns_item_from_snapshot(self, store):
        """Every sample comes from the installed catalog."""
        store.replace(make_games(10, 20, 30))

        for _ in range(100):
            game, found = store.sample_random()
            assert found is True
            assert game.id in {10, 20, 30}

    def test_sample_covers_both_items(self, store):
        """Sampling a two-item catalog 1000 times sees both ids."""
        store.replace(make_games(1, 2))

        seen = {store.sample_random()[0].id for _ in range(1000)}

        assert seen == {1, 2}

    def test_replace_is_total(self, store):
        """Replace discards the previous catalog entirely."""
        store.replace(make_games(1, 2, 3))
        store.replace(make_games(4))

        assert store.count() == 1
        for _ in range(20):
            assert store.sample_random()[0].id == 4

    def test_replace_with_empty_catalog(self, store):
        """Installing an empty catalog empties the store."""
        store.replace(make_games(1, 2))
        assert store.replace([]) == 0
        assert store.sample_random() == (None, False)

    def test_replace_returns_size(self, store):
        """Replace reports the installed catalog size."""
        assert store.replace(make_games(*range(1, 8))) == 7
        assert store.count() == 7

    def test_replace_copies_input(self, store):
        """Mutating the caller's list does not leak into the store."""
        games = make_games(1, 2)
        store.replace(games)
        games.clear()

        assert store.count() == 2

    def test_replace_during_concurrent_samples(self):
        """Samples racing a replace see the old or the new set, never a mix."""
        old_ids = {1, 2}
        new_ids = {100, 101, 102}
        store = CatalogStore(make_games(*old_ids))
        start = threading.Barrier(6)

        def sample_many():
            start.wait()
            results = []
            for _ in range(2000):
                game, found = store.sample_random()
                results.append((found, game.id if found else None))
            return results

        def replace():
            start.wait()
            store.replace(make_games(*new_ids))

        with ThreadPoolExecutor(max_workers=6) as pool:
            readers = [pool.submit(sample_many) for _ in range(5)]
            writer = pool.submit(replace)
            writer.result()
            results = [r for f in readers for r in f.result()]

        assert all(found for found, _ in results)
        assert {game_id for _, game_id in results} <= old_ids | new_ids
        assert store.count() == 3

    def test_count_consistent_with_samples_under_churn(self):
        """Readers never index outside the snapshot they captured."""
        store = CatalogStore(make_games(1))
        stop = threading.Event()
        errors = []

        def churn():
            size = 1
            while not stop.is_set():
                size = 1 if size > 50 else size + 7
                store.replace(make_games(*range(1, size + 1)))

        def read():
            try:
                for _ in range(5000):
                    game, found = store.sample_random()
                    assert found
                    assert 1 <= game.id <= 57
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        writer = threading.Thread(target=churn)
        writer.start()
        readers = [threading.Thread(target=read) for _ in range(4)]
        for t in readers:
            t.start()
        for t in readers:
            t.join()
        stop.set()
        writer.join()

        assert errors == []
