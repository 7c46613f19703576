from pathlib import Path
from typing import Mapping

from track_items import Track
from tracks_file import RepathError, TracksFile, TracksFileError


class Playlist(TracksFile[Track]):
    """An .m3u playlist: one track path per line, no header and no comments."""

    EXTENSION = ".m3u"

    def __init__(self, path: Path | str) -> None:
        super().__init__(path)
        self.name = self.path.stem
        if not self.name or self.name == "..":
            raise TracksFileError(self.path, "Failed to extract playlist name from")

    def __str__(self) -> str:
        return f"Playlist: {self.name}"

    def __repr__(self) -> str:
        return f"Playlist({self.name!r}, tracks={len(self)})"

    def _parse_line(self, line: str) -> Track:
        return Track.from_line(line)

    def _format_record(self, record: Track) -> str:
        return record.to_line()

    @staticmethod
    def _track_of(record: Track) -> Track:
        return record

    def _with_path(self, record: Track, new_path: str) -> Track:
        return Track(new_path)

    def repath(self, edits: Mapping[Track, str]) -> None:
        """
        Point every occurrence of each track in `edits` at its new path.

        All edits must name tracks already on the playlist; otherwise a RepathError
        is raised and the playlist is left untouched.
        """
        unknown = [track for track in edits if track not in self._index]
        if unknown:
            raise RepathError(self.path, unknown)

        n_changed = self._rewrite_paths(edits)
        if edits:
            self._modified = True
        self.logger.debug(f"Repathed {n_changed} tracks in {self}")
