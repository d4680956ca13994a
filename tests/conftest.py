from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List

import pytest

# Ensure local "src/" takes precedence over any globally-installed "eraledger" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from eraledger.runtime.events import RewardClaimed  # noqa: E402
from eraledger.runtime.service import RewardService  # noqa: E402
from eraledger.runtime.sqlite_db import SqliteDB  # noqa: E402

ERA = 100
BUDGET = 1_000_000


@pytest.fixture
def db(tmp_path: Path) -> SqliteDB:
    d = SqliteDB(path=str(tmp_path / "eraledger.db"))
    d.init_schema()
    return d


@pytest.fixture
def claimed_events() -> List[RewardClaimed]:
    return []


@pytest.fixture
def make_service(db: SqliteDB, claimed_events: List[RewardClaimed]) -> Callable[..., RewardService]:
    def _make(**kw) -> RewardService:
        kw.setdefault("era_duration", ERA)
        kw.setdefault("rewards_per_era", BUDGET)
        kw.setdefault("sink", claimed_events.append)
        kw.setdefault("clock", lambda: 0)
        return RewardService(db=db, **kw)

    return _make


@pytest.fixture
def service(make_service: Callable[..., RewardService]) -> RewardService:
    return make_service()
