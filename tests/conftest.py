import sys
from unittest.mock import MagicMock

import pytest

from playcount import Playcount
from playlist import Playlist
from track_items import Entry, Track


@pytest.fixture
def track_factory():
    def _factory(path="/music/Artist/Album/01 Title.mp3"):
        return Track(path)

    return _factory


@pytest.fixture
def entry_factory():
    def _factory(path="/music/Artist/Album/01 Title.mp3", count=1):
        return Entry(Track(path), count)

    return _factory


@pytest.fixture
def playlist_file(tmp_path):
    """Write an .m3u file with one line per path and return its path."""

    def _factory(paths, name="Mix", directory=None):
        path = (directory or tmp_path) / f"{name}.m3u"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(f"{p}\n" for p in paths), encoding="utf-8")
        return path

    return _factory


@pytest.fixture
def playcount_file(tmp_path):
    """Write a .tsv file from (count, path) pairs or raw string lines and return its path."""

    def _factory(rows, name="plays", directory=None):
        path = (directory or tmp_path) / f"{name}.tsv"
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [row if isinstance(row, str) else f"{row[0]}\t{row[1]}" for row in rows]
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    return _factory


@pytest.fixture
def playlist_factory(playlist_file):
    def _factory(paths, name="Mix"):
        return Playlist.open(playlist_file(paths, name=name))

    return _factory


@pytest.fixture
def playcount_factory(playcount_file):
    def _factory(rows, name="plays"):
        return Playcount.open(playcount_file(rows, name=name))

    return _factory


@pytest.fixture(scope="session")
def patch_paths(tmp_path_factory):
    return tmp_path_factory.mktemp("logs")


@pytest.fixture(scope="session")
def config_args():
    return ["track_files.py", "summary"]


@pytest.fixture(scope="function", autouse=True)
def initialize_manager(monkeypatch, patch_paths, config_args):
    monkeypatch.setattr(sys, "argv", config_args)
    monkeypatch.setattr("manager.log_manager.LogManager.LOG_DIR", str(patch_paths))
    monkeypatch.setattr("manager.config_manager.ConfigManager.CONFIG_FILE", "./does_not_exist.ini")
    from manager import get_manager

    # Avoid re-initialization
    mgr = get_manager()
    monkeypatch.setattr(mgr, "get_stats_manager", lambda: MagicMock())
    monkeypatch.setattr(mgr, "get_status_manager", lambda: MagicMock())
    if not getattr(mgr, "_initialized", False):
        mgr.initialize()
