"""Shared fixtures: record factory and a temporary JSON record store."""
import itertools
from pathlib import Path

import pytest

from vinylvault.core.record_store import JsonRecordStore
from vinylvault.models.record import Record

_ids = itertools.count(1)


def make_record(**kwargs) -> Record:
    """Record with a unique id; any field can be overridden."""
    kwargs.setdefault("id", f"rec-{next(_ids)}")
    return Record(**kwargs)


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def json_store(tmp_path: Path) -> JsonRecordStore:
    return JsonRecordStore(tmp_path / "records.json")
