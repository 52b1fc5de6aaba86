"""Pytest configuration and fixtures."""

import gc
import shutil
import tempfile
from collections.abc import Generator, Sequence
from pathlib import Path

import numpy as np
import pytest

from recosim.app.adapters import HashingVectorizer, SqliteRecordStore
from recosim.config import Settings


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        # Release SQLite file handles before removal
        gc.collect()
        shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def override_settings(temp_dir: Path) -> Generator[Settings, None, None]:
    """Provide isolated recosim settings scoped to tests."""

    import recosim.config as config_module

    original_settings = getattr(config_module, "_settings", None)

    data_dir = temp_dir / "appdata"
    data_dir.mkdir(parents=True, exist_ok=True)

    settings = config_module.Settings(
        data_dir=data_dir,
        audit_enabled=True,
    )

    config_module._settings = settings

    try:
        yield settings
    finally:
        config_module._settings = original_settings


@pytest.fixture
def store(temp_dir: Path) -> Generator[SqliteRecordStore, None, None]:
    """Empty SQLite record store in the temporary directory."""
    record_store = SqliteRecordStore(temp_dir / "store.db")
    try:
        yield record_store
    finally:
        record_store.close()


@pytest.fixture
def vectorizer() -> HashingVectorizer:
    return HashingVectorizer(dimensions=128, salt="recosim-test")


class TableVectorizer:
    """Vectorizer returning fixed vectors for known texts (zeros otherwise)."""

    def __init__(self, table: dict[str, Sequence[float]], *, dimensions: int = 2) -> None:
        self._table = table
        self._dim = dimensions

    @property
    def dimensions(self) -> int:
        return self._dim

    def vectorize(self, text: str) -> np.ndarray:
        return np.asarray(self._table.get(text, [0.0] * self._dim), dtype=np.float64)


@pytest.fixture
def table_vectorizer_factory():
    """Build a ``TableVectorizer`` from a text -> vector mapping."""

    def _factory(table: dict[str, Sequence[float]], dimensions: int = 2) -> TableVectorizer:
        return TableVectorizer(table, dimensions=dimensions)

    return _factory
