import abc
import logging
from pathlib import Path
from typing import Dict, Generic, Iterable, Iterator, List, Mapping, Optional, Tuple, TypeVar

from track_items import ParseError, Track

Record = TypeVar("Record")


class TracksFileError(Exception):
    """An I/O failure on a tracks file. The underlying error is chained as __cause__."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{message} '{self.path}'")


class RepathError(TracksFileError):
    def __init__(self, path: Path | str, unknown: Iterable[Track]) -> None:
        self.unknown = sorted(unknown, key=lambda t: t.path)
        listed = ", ".join(repr(t.path) for t in self.unknown)
        super().__init__(path, f"Repath edits contain track(s) that do not appear on the playlist ({listed}):")


class TracksFile(Generic[Record], abc.ABC):
    """
    An ordered sequence of records bound to a text file, paired with an index
    mapping each track to every position it occupies in the sequence.

    The index always satisfies:
      - every position of the sequence is listed under the track stored there
      - every listed position holds the track it is listed under
      - no key maps to an empty list
    """

    EXTENSION: str = ""

    def __init__(self, path: Path | str) -> None:
        self.logger = logging.getLogger(f"TrackFiles.{self.__class__.__name__}")
        self.path = Path(path)
        self._records: List[Record] = []
        self._index: Dict[Track, List[int]] = {}
        self._modified = False

    # ------------------------------
    # Record format
    # ------------------------------
    @abc.abstractmethod
    def _parse_line(self, line: str) -> Record:
        """Turn one line of the file into a record, raising ParseError if it is malformed."""
        raise NotImplementedError("_parse_line() not implemented")

    @abc.abstractmethod
    def _format_record(self, record: Record) -> str:
        raise NotImplementedError("_format_record() not implemented")

    @staticmethod
    @abc.abstractmethod
    def _track_of(record: Record) -> Track:
        raise NotImplementedError("_track_of() not implemented")

    @abc.abstractmethod
    def _with_path(self, record: Record, new_path: str) -> Record:
        """Return the record to store in place of `record` once its track is moved to `new_path`."""
        raise NotImplementedError("_with_path() not implemented")

    # ------------------------------
    # Construction
    # ------------------------------
    @classmethod
    def new(cls, path: Path | str) -> "TracksFile[Record]":
        """Return an empty collection bound to `path`. The filesystem is not touched."""
        return cls(path)

    @classmethod
    def open(cls, path: Path | str) -> "TracksFile[Record]":
        """Read `path` line by line, skipping lines that fail to parse."""
        tracks_file = cls.new(path)
        try:
            # Only LF ends a line; a CR is dropped when it directly precedes the LF
            with tracks_file.path.open("r", encoding="utf-8", newline="\n") as file:
                for lineno, line in enumerate(file, start=1):
                    if line.endswith("\r\n"):
                        line = line[:-2]
                    elif line.endswith("\n"):
                        line = line[:-1]
                    try:
                        record = tracks_file._parse_line(line)
                    except ParseError as e:
                        tracks_file.logger.warning(f"Failed to parse line {lineno} in '{tracks_file.path}': {e}, skipping")
                        continue
                    tracks_file._register(record)
        except (OSError, UnicodeDecodeError) as e:
            raise TracksFileError(tracks_file.path, f"Failed to read {cls.__name__.lower()}") from e

        tracks_file.logger.debug(f"Read {len(tracks_file)} records from '{tracks_file.path}'")
        return tracks_file

    @classmethod
    def open_or_new(cls, path: Path | str) -> "TracksFile[Record]":
        return cls.open(path) if Path(path).exists() else cls.new(path)

    # ------------------------------
    # Discovery
    # ------------------------------
    @classmethod
    def iter_paths(cls, directory: Path | str) -> List[Path]:
        """Return the regular files in `directory` carrying this kind's extension. Raises OSError."""
        return sorted(p for p in Path(directory).iterdir() if p.is_file() and p.suffix == cls.EXTENSION)

    @classmethod
    def iter(cls, directory: Path | str) -> Iterator["TracksFile[Record]"]:
        """Open every file of this kind in `directory`, skipping the ones that fail to open."""
        logger = logging.getLogger(f"TrackFiles.{cls.__name__}")
        try:
            paths = cls.iter_paths(directory)
        except OSError as e:
            logger.error(f"Failed to list the {cls.__name__.lower()}s directory '{directory}': {e}")
            return

        for path in paths:
            try:
                yield cls.open(path)
            except TracksFileError as e:
                logger.warning(f"{e}: {e.__cause__}, skipping")

    # ------------------------------
    # Queries
    # ------------------------------
    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, track: Track) -> bool:
        return self.contains(track)

    def tracks(self) -> Iterator[Track]:
        """Iterate over all tracks in file order, duplicates included."""
        return (self._track_of(record) for record in self._records)

    def tracks_unique(self) -> List[Track]:
        """Each distinct track once, in order of first appearance. The list is a snapshot."""
        return list(self._index)

    def contains(self, track: Track) -> bool:
        return track in self._index

    def track_positions(self, track: Track) -> Optional[Tuple[int, ...]]:
        positions = self._index.get(track)
        return tuple(positions) if positions is not None else None

    def is_modified(self) -> bool:
        return self._modified

    def verify_integrity(self) -> bool:
        """Check the sequence against the index. This is slow and meant for tests."""
        seen = 0
        for i, record in enumerate(self._records):
            if i not in self._index.get(self._track_of(record), ()):
                return False
        for track, positions in self._index.items():
            if not positions or len(set(positions)) != len(positions):
                return False
            if any(not 0 <= i < len(self._records) or self._track_of(self._records[i]) != track for i in positions):
                return False
            seen += len(positions)
        return seen == len(self._records)

    # ------------------------------
    # Persistence
    # ------------------------------
    def write(self) -> None:
        """Overwrite the bound file with the current sequence, one record per line."""
        lines = [self._format_record(record) + "\n" for record in self._records]
        kind = self.__class__.__name__.lower()
        # Encode up front so an unencodable path never leaves a truncated file behind
        try:
            data = "".join(lines).encode("utf-8")
        except UnicodeEncodeError as e:
            raise TracksFileError(self.path, f"Failed to encode {kind}") from e

        try:
            with self.path.open("wb") as file:
                file.write(data)
        except OSError as e:
            raise TracksFileError(self.path, f"Failed to write {kind}") from e
        self._modified = False
        self.logger.debug(f"Wrote {len(lines)} records to '{self.path}'")

    # ------------------------------
    # Mutation
    # ------------------------------
    def append(self, record: Record) -> None:
        self._register(record)
        self._modified = True

    def remove_at(self, index: int) -> None:
        """Remove the record at `index`, shifting the positions stored for every later record."""
        if not 0 <= index < len(self._records):
            self.logger.warning(f"Out-of-bounds remove_at requested (index: {index}, len: {len(self._records)})")
            return

        track = self._track_of(self._records[index])
        positions = self._index[track]
        positions.remove(index)
        if not positions:
            del self._index[track]

        del self._records[index]

        # Each key is shifted once, however often it occurs past the removed slot
        for later in {self._track_of(record) for record in self._records[index:]}:
            positions = self._index[later]
            for i, pos in enumerate(positions):
                assert pos != index, f"Index of '{later}' still points at removed position {index}"
                if pos > index:
                    positions[i] = pos - 1

        self._modified = True

    def remove_all(self, track: Track) -> int:
        """Remove every occurrence of `track`. Returns the number of records removed."""
        if track not in self._index:
            return 0
        positions = sorted(self._index[track])
        for index in reversed(positions):
            self.remove_at(index)
        self._modified = True
        return len(positions)

    def _remove_positions(self, positions: Iterable[int]) -> None:
        """Remove a precomputed set of positions, highest first so pending ones stay valid."""
        for index in sorted(positions, reverse=True):
            self.remove_at(index)

    def _rewrite_paths(self, edits: Mapping[Track, str]) -> int:
        """Move every record of each known track in `edits` to its new path and rebuild the index."""
        n_changed = 0
        for target, new_path in edits.items():
            for index in self._index.get(target, ()):
                self._records[index] = self._with_path(self._records[index], str(new_path))
                n_changed += 1
        self._rebuild_index()
        return n_changed

    # ------------------------------
    # Index maintenance
    # ------------------------------
    def _register(self, record: Record) -> None:
        track = self._track_of(record)
        position = len(self._records)
        self._records.append(record)
        if track in self._index:
            self._index[track].append(position)
        else:
            self._index[track] = [position]

    def _rebuild_index(self) -> None:
        """Rebuild the index from scratch. Rewritten paths may merge or split duplicate groups."""
        records = self._records
        self._records = []
        self._index = {}
        for record in records:
            self._register(record)
        self.logger.debug(f"Rebuilt index for '{self.path}': {len(self._index)} distinct tracks")
