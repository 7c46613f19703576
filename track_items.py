from typing import Union


class ParseError(ValueError):
    """Raised when a line of a tracks file cannot be turned into a record."""


class Track(object):
    """A reference to a media file, identified solely by its path string."""

    def __init__(self, path: str) -> None:
        self._path = str(path)

    @property
    def path(self) -> str:
        return self._path

    @classmethod
    def from_line(cls, line: str) -> "Track":
        # Any line is a valid track, including an empty one
        return cls(line)

    def to_line(self) -> str:
        return self._path

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Track):
            return NotImplemented
        return self._path == other._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"Track({self._path!r})"


class Entry(object):
    """A play-count record: a track and how many times it was played."""

    SEPARATOR = "\t"

    def __init__(self, track: Union[Track, str], count: int = 0) -> None:
        if count < 0:
            raise ValueError(f"Play count must be non-negative, got {count}")
        self.track = track if isinstance(track, Track) else Track(track)
        self.count = count

    @classmethod
    def parse(cls, line: str) -> "Entry":
        """Parse a `<count><TAB><path>` line."""
        count_str, sep, path = line.partition(cls.SEPARATOR)
        if not sep:
            raise ParseError(f"Missing tab separator in {line!r}")
        if not (count_str.isascii() and count_str.isdigit()):
            raise ParseError(f"Invalid play count {count_str!r}")
        return cls(Track(path), int(count_str))

    def to_line(self) -> str:
        return f"{self.count}{self.SEPARATOR}{self.track.path}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self.track == other.track and self.count == other.count

    __hash__ = None

    def __repr__(self) -> str:
        return f"Entry({self.track.path!r}, {self.count})"
