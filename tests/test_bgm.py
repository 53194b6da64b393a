"""Tests for the background music catalog."""

import pytest

from vlogkit.errors import StorageError
from vlogkit.storage import BGMLibrary

CATALOG = """\
tracks:
  - id: acoustic-morning
    title: Acoustic Morning
    genre: acoustic
    duration: 120
    file: acoustic_morning.mp3
    tags: [calm, cafe]
  - id: city-pop
    title: City Pop
    file: city_pop.mp3
"""


@pytest.fixture
def library(tmp_path):
    (tmp_path / "catalog.yaml").write_text(CATALOG)
    (tmp_path / "acoustic_morning.mp3").write_bytes(b"")
    return BGMLibrary(tmp_path)


class TestBGMLibrary:
    """Tests for BGMLibrary."""

    def test_list_tracks(self, library):
        tracks = library.list_tracks()

        assert [t.id for t in tracks] == ["acoustic-morning", "city-pop"]
        assert tracks[0].tags == ["calm", "cafe"]

    def test_resolve_path(self, library, tmp_path):
        assert library.resolve_path("acoustic-morning") == tmp_path / "acoustic_morning.mp3"

    def test_resolve_missing_file_or_track(self, library):
        assert library.resolve_path("city-pop") is None
        assert library.resolve_path("unknown") is None
        assert library.resolve_path(None) is None

    def test_no_catalog(self, tmp_path):
        assert BGMLibrary(tmp_path / "none").list_tracks() == []

    def test_broken_catalog(self, tmp_path):
        (tmp_path / "catalog.yaml").write_text("tracks: [")

        with pytest.raises(StorageError):
            BGMLibrary(tmp_path).list_tracks()
