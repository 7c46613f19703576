from pathlib import Path
from typing import Dict, Iterator, List, Mapping

from track_items import Entry, Track
from tracks_file import TracksFile


class Playcount(TracksFile[Entry]):
    """A .tsv play-count ledger with one `<count><TAB><path>` entry per line."""

    EXTENSION = ".tsv"
    DIRNAME = ".playcount"

    @classmethod
    def default_dir(cls, music_dir: Path | str) -> Path:
        return Path(music_dir) / cls.DIRNAME

    def __str__(self) -> str:
        return f"Playcount: {self.path.stem}"

    def __repr__(self) -> str:
        return f"Playcount({str(self.path)!r}, entries={len(self)})"

    def _parse_line(self, line: str) -> Entry:
        return Entry.parse(line)

    def _format_record(self, record: Entry) -> str:
        return record.to_line()

    @staticmethod
    def _track_of(record: Entry) -> Track:
        return record.track

    def _with_path(self, record: Entry, new_path: str) -> Entry:
        return Entry(Track(new_path), record.count)

    def entries(self) -> Iterator[Entry]:
        """Iterate over all entries in order of appearance. Several may refer to the same track."""
        return iter(self._records)

    def total(self, track: Track) -> int:
        return sum(self._records[i].count for i in self._index.get(track, ()))

    def increment(self, track: Track, amount: int = 1) -> None:
        """Add `amount` plays to the earliest entry for `track`, appending a new entry if there is none."""
        if amount < 0:
            raise ValueError(f"Cannot increment by a negative amount ({amount})")
        positions = self._index.get(track)
        if positions:
            self._records[positions[0]].count += amount
            self._modified = True
        else:
            self.append(Entry(track, amount))

    def bulk_rename(self, edits: Mapping[Track, str]) -> int:
        """
        Point every entry of each track in `edits` at its new path.
        Tracks absent from the ledger are skipped. Returns the number of entries changed.
        """
        skipped = [track for track in edits if track not in self._index]
        if skipped:
            self.logger.debug(f"{len(skipped)} renamed track(s) not present in {self}")

        n_changed = self._rewrite_paths(edits)
        if n_changed:
            self._modified = True
        return n_changed

    def merge_duplicates(self) -> int:
        """
        Merge entries referring to the same track into the earliest one, adding up
        their counts. Returns the number of duplicate entries that were removed.
        """
        # Plan against the current layout before touching anything
        increments: Dict[int, int] = {}
        dupe_positions: List[int] = []
        for positions in self._index.values():
            if len(positions) > 1:
                first, rest = positions[0], positions[1:]
                increments[first] = sum(self._records[i].count for i in rest)
                dupe_positions.extend(rest)

        if not dupe_positions:
            return 0

        for index, amount in increments.items():
            self._records[index].count += amount
        self._remove_positions(dupe_positions)
        self._modified = True
        self.logger.debug(f"Merged {len(dupe_positions)} duplicate entries in {self}")
        return len(dupe_positions)
