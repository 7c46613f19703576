from typing import List, Tuple

from playcount import Playcount
from tracks_file import TracksFile


def paths_of(tracks_file: TracksFile) -> List[str]:
    return [track.path for track in tracks_file.tracks()]


def rows_of(playcount: Playcount) -> List[Tuple[int, str]]:
    return [(entry.count, entry.track.path) for entry in playcount.entries()]


def assert_consistent(tracks_file: TracksFile) -> None:
    """Check the position index against the sequence, position by position."""
    assert tracks_file.verify_integrity()

    expected = {}
    for i, track in enumerate(tracks_file.tracks()):
        expected.setdefault(track, []).append(i)

    assert set(tracks_file.tracks_unique()) == set(expected)
    for track, positions in expected.items():
        assert tracks_file.track_positions(track) == tuple(positions)
