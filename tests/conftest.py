from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from helprota.board import Board
from helprota.config import HelprotaSettings
from helprota.fanout import FanOut


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self) -> None:
        self._now = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


@pytest.fixture()
def settings(tmp_path: Path) -> HelprotaSettings:
    return HelprotaSettings(
        HELPROTA_DATA_DIR=tmp_path / "data",
        HELPROTA_MCP_ENABLED=False,
    )


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def board(settings: HelprotaSettings, clock: StepClock) -> Board:
    return Board.open(settings, fanout=FanOut(max_subscribers=5, queue_size=16), clock=clock)
