from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from scrobble_race.events import RawEvent


def plays(entity: str, year: int, month: int, count: int, day: int = 1) -> list[RawEvent]:
    """count plays of entity spread over consecutive hours of one day."""
    start = datetime(year, month, day, 12, 0, 0)
    return [RawEvent(entity, start + timedelta(hours=i)) for i in range(count)]


@pytest.fixture
def two_artist_events() -> list[RawEvent]:
    """A reaches 3 plays in January and 5 in February; B first plays in March (2)."""
    return (
        plays("A", 2020, 1, 3)
        + plays("A", 2020, 2, 2)
        + plays("B", 2020, 3, 2)
    )


@pytest.fixture
def tied_artist_events() -> list[RawEvent]:
    """Within one month: Zed and Abba with 10 plays each, Cher with 7."""
    return (
        plays("Zed", 2021, 6, 10)
        + plays("Cher", 2021, 6, 7)
        + plays("Abba", 2021, 6, 10)
    )


@pytest.fixture
def sparse_history() -> list[RawEvent]:
    """Several artists with irregular listening and silent months in between."""
    return (
        plays("Radiohead", 2019, 11, 4)
        + plays("Björk", 2019, 12, 1)
        + plays("Radiohead", 2020, 3, 2)
        + plays("Portishead", 2020, 3, 6)
        + plays("Björk", 2020, 7, 9)
        + plays("Massive Attack", 2020, 8, 3)
        + plays("Radiohead", 2021, 1, 1)
        + plays("Portishead", 2021, 2, 1)
    )
