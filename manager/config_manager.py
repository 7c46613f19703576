import logging
from enum import StrEnum
from pathlib import Path

import configargparse

from playcount import Playcount

logger = logging.getLogger(__name__)


class ConfigEnum(StrEnum):
    """Base class for case-insensitive string enums."""

    def __eq__(self, other: "ConfigEnum") -> bool:
        if isinstance(other, str):
            return self.value.lower() == other.lower()
        return super().__eq__(other)

    def __hash__(self):
        return hash(self.value.lower())

    @property
    def display(self) -> str:
        """Return the display name of the enum value."""
        name = self.name.replace("_", " ").title()
        return f"{name:<20} : {self.description}" if hasattr(self, "description") else name

    @classmethod
    def find(cls, value: str) -> "ConfigEnum":
        """Find an enum by its value, case-insensitive."""
        if value is None:
            return None

        for item in cls:
            if item.value.lower() == value.lower() or item.name.lower() == value.lower():
                return item
        return None


class LogLevel(ConfigEnum):
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"


class Command(ConfigEnum):
    SUMMARY = "summary"
    REMOVE = "remove"
    REPATH = "repath"
    RENAME = "rename"
    MERGE = "merge"
    COUNT = "count"

    @property
    def description(self) -> str:
        return {
            self.SUMMARY: "List playlists and playcounts with their sizes.",
            self.REMOVE: "Remove every occurrence of the given tracks from all playlists and playcounts.",
            self.REPATH: "Point a track at a new path in playlists (OLD NEW).",
            self.RENAME: "Point a track at a new path in all playcounts (OLD NEW).",
            self.MERGE: "Merge duplicate playcount entries, adding up their counts.",
            self.COUNT: "Record one play for each given track.",
        }[self]

    @property
    def arg_count(self) -> tuple[int, int | None]:
        """Minimum and maximum number of positional arguments (None = unbounded)."""
        return {
            self.SUMMARY: (0, 0),
            self.REMOVE: (1, None),
            self.REPATH: (2, 2),
            self.RENAME: (2, 2),
            self.MERGE: (0, 0),
            self.COUNT: (1, None),
        }[self]


class ConfigManager:
    CONFIG_FILE = "./config.ini"
    DEFAULT_MUSIC_DIR = "~/Music"
    DEFAULT_PLAYLIST_DIR = "~/Music/Playlists"
    DEFAULT_PLAYCOUNT = "plays"
    _ENUM_FIELDS = {
        "log": LogLevel,
        "command": Command,
    }

    def __init__(self) -> None:
        """Initialize the configuration manager with default settings."""
        self.parser = configargparse.ArgumentParser(
            default_config_files=[self.CONFIG_FILE],
            description="Edits playlists and play-count ledgers in bulk",
            epilog="Commands:\n" + "\n".join(f"  {c.display}" for c in Command),
        )
        self.config = self.parse_args()
        self._initialize_attributes()

    def parse_args(self) -> configargparse.Namespace:
        main_group = self.parser.add_argument_group("Main Configuration")
        main_group.add_argument("command", type=str, help=f"Operation to run ({', '.join(Command)})")
        main_group.add_argument("args", nargs="*", default=[], help="Track paths the command operates on")
        main_group.add_argument("-d", "--dry", action="store_true", help="Does not write any changes")
        main_group.add_argument("--log", type=str, default=LogLevel.WARNING, help=f"Sets the logging level ({', '.join(LogLevel)})")

        dirs_group = self.parser.add_argument_group("Directories Configuration")
        dirs_group.add_argument("--music-dir", type=str, default=self.DEFAULT_MUSIC_DIR, help="Root of the music library")
        dirs_group.add_argument("--playlist-dir", type=str, default=self.DEFAULT_PLAYLIST_DIR, help="Directory holding .m3u playlists")
        dirs_group.add_argument("--playcount-dir", type=str, help="Directory holding .tsv playcounts (default: <music-dir>/.playcount)")

        target_group = self.parser.add_argument_group("Target Configuration")
        target_group.add_argument("--playlist", type=str, help="Restrict repath to the playlist with this name")
        target_group.add_argument("--playcount", type=str, default=self.DEFAULT_PLAYCOUNT, help="Name of the playcount that 'count' records plays in")

        return self.parser.parse_args()

    def _initialize_attributes(self) -> None:
        """Set attributes from parsed config, including enum coercion and validation."""
        for key, value in vars(self.config).items():
            if key in self._ENUM_FIELDS:
                setattr(self, key, self._parse_enum_field(key, value))
            else:
                setattr(self, key, value)

        self._resolve_directories()
        self._validate_config_requirements()
        logger.debug(f"Current runtime configuration: {self.to_dict()}")

    def _parse_enum_field(self, key: str, value: str) -> ConfigEnum | None:
        """Convert a CLI string to the corresponding ConfigEnum value, with error checking."""
        enum_class = self._ENUM_FIELDS[key]
        if value is None:
            return None

        enum_value = enum_class.find(value)
        if enum_value is None:
            raise ValueError(f"Invalid value '{value}' for '{key}'. Valid options: {', '.join(e.value for e in enum_class)}")
        return enum_value

    def _resolve_directories(self) -> None:
        self.music_dir = Path(self.music_dir).expanduser()
        self.playlist_dir = Path(self.playlist_dir).expanduser()
        if self.playcount_dir:
            self.playcount_dir = Path(self.playcount_dir).expanduser()
        else:
            self.playcount_dir = Playcount.default_dir(self.music_dir)

    def _validate_config_requirements(self) -> None:
        """Perform validations that require multiple config values."""
        minimum, maximum = self.command.arg_count
        count = len(self.args)
        if count < minimum or (maximum is not None and count > maximum):
            expected = f"{minimum}" if minimum == maximum else f"at least {minimum}" if maximum is None else f"{minimum}-{maximum}"
            raise ValueError(f"Command '{self.command}' expects {expected} argument(s), got {count}.")

        if self.playlist and self.command != Command.REPATH:
            raise ValueError("--playlist can only be used with the 'repath' command.")

    def to_dict(self) -> dict:
        """Returns a dictionary of current runtime values keyed by the 'dest' of each parser action."""
        config_dict = {}
        for action in self.parser._actions:
            key = action.dest
            if key and hasattr(self, key):
                config_dict[key] = getattr(self, key)
        return config_dict
