"""Shared test fixtures."""

from pathlib import Path

import pytest

from penmatch.lookup import InMemoryPenLookup
from tests.factories import make_master


@pytest.fixture
def write_tsv(tmp_path):
    """Factory writing rows as a tab-separated file; returns its path."""

    def _write(name: str, header: list[str], rows: list[list[str]]) -> Path:
        path = tmp_path / name
        lines = ['\t'.join(header)] + ['\t'.join(row) for row in rows]
        path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
        return path

    return _write


@pytest.fixture
def empty_lookup():
    """Registry without any records."""
    return InMemoryPenLookup([])


@pytest.fixture
def single_lookup():
    """Registry holding only the default SMITHERSON record."""
    return InMemoryPenLookup([make_master()])
