#!/usr/bin/env python3
import locale
import logging
import sys
from pathlib import Path
from typing import Callable, List, Type

from manager import get_manager
from manager.config_manager import Command
from playcount import Playcount
from playlist import Playlist
from track_items import Track
from tracks_file import RepathError, TracksFile, TracksFileError


class TrackFiles:
    def __init__(self) -> None:
        self.logger = logging.getLogger("TrackFiles")
        mgr = get_manager()
        self.config_mgr = mgr.get_config_manager()
        self.stats_mgr = mgr.get_stats_manager()
        self.status_mgr = mgr.get_status_manager()
        self.failed = False
        self.report: List[str] = []

    def run(self) -> int:
        handler = {
            Command.SUMMARY: self.summary,
            Command.REMOVE: self.remove,
            Command.REPATH: self.repath,
            Command.RENAME: self.rename,
            Command.MERGE: self.merge,
            Command.COUNT: self.count,
        }[self.config_mgr.command]

        if self.config_mgr.dry:
            self.logger.info("Running a DRY RUN. No files will be written!")
        handler()
        return 1 if self.failed else 0

    # ------------------------------
    # Commands
    # ------------------------------
    def summary(self) -> None:
        def describe_playlist(playlist: Playlist) -> None:
            self.report.append(f"{playlist.name:<40} {len(playlist):>7} tracks {len(playlist.tracks_unique()):>7} unique")

        def describe_playcount(playcount: Playcount) -> None:
            plays = sum(entry.count for entry in playcount.entries())
            self.report.append(f"{playcount.path.stem:<40} {len(playcount):>7} entries {len(playcount.tracks_unique()):>7} unique {plays:>9} plays")

        self.report.append(f"Playlists in {self.config_mgr.playlist_dir}:")
        self._process(Playlist, self.config_mgr.playlist_dir, "Reading playlists", describe_playlist)
        self.report.append(f"\nPlaycounts in {self.config_mgr.playcount_dir}:")
        self._process(Playcount, self.config_mgr.playcount_dir, "Reading playcounts", describe_playcount)

    def remove(self) -> None:
        tracks = [Track(path) for path in self.config_mgr.args]

        def remove_tracks(tracks_file: TracksFile) -> None:
            for track in tracks:
                removed = tracks_file.remove_all(track)
                if removed:
                    self.logger.info(f"Removed {removed} occurrence(s) of '{track}' from {tracks_file}")
                    self.stats_mgr.increment("tracks_removed", removed)

        self._process(Playlist, self.config_mgr.playlist_dir, "Removing from playlists", remove_tracks)
        self._process(Playcount, self.config_mgr.playcount_dir, "Removing from playcounts", remove_tracks)

    def repath(self) -> None:
        old, new = self.config_mgr.args
        edits = {Track(old): new}

        if self.config_mgr.playlist:
            path = Path(self.config_mgr.playlist_dir) / f"{self.config_mgr.playlist}{Playlist.EXTENSION}"
            try:
                playlist = Playlist.open(path)
            except TracksFileError as e:
                self._fail(f"{e}: {e.__cause__}")
                return
            self._repath_playlist(playlist, edits)
            self.stats_mgr.increment("playlists_processed")
            if playlist.is_modified():
                self._save(playlist)
            return

        def repath_if_present(playlist: Playlist) -> None:
            if all(track in playlist for track in edits):
                self._repath_playlist(playlist, edits)

        self._process(Playlist, self.config_mgr.playlist_dir, "Repathing playlists", repath_if_present)

    def rename(self) -> None:
        old, new = self.config_mgr.args
        edits = {Track(old): new}

        def rename_entries(playcount: Playcount) -> None:
            renamed = playcount.bulk_rename(edits)
            if renamed:
                self.logger.info(f"Renamed {renamed} entries in {playcount}")
                self.stats_mgr.increment("entries_renamed", renamed)

        self._process(Playcount, self.config_mgr.playcount_dir, "Renaming in playcounts", rename_entries)

    def merge(self) -> None:
        def merge_entries(playcount: Playcount) -> None:
            merged = playcount.merge_duplicates()
            if merged:
                self.logger.info(f"Merged {merged} duplicate entries in {playcount}")
                self.stats_mgr.increment("duplicates_merged", merged)

        self._process(Playcount, self.config_mgr.playcount_dir, "Merging playcount duplicates", merge_entries)

    def count(self) -> None:
        path = Path(self.config_mgr.playcount_dir) / f"{self.config_mgr.playcount}{Playcount.EXTENSION}"
        try:
            playcount = Playcount.open_or_new(path)
        except TracksFileError as e:
            self._fail(f"{e}: {e.__cause__}")
            return

        for path_str in self.config_mgr.args:
            track = Track(path_str)
            playcount.increment(track)
            self.logger.info(f"'{track}' now has {playcount.total(track)} plays in {playcount}")
            self.stats_mgr.increment("plays_recorded")

        self.stats_mgr.increment("playcounts_processed")
        self._save(playcount)

    # ------------------------------
    # Helpers
    # ------------------------------
    def _process(self, kind: Type[TracksFile], directory: Path, desc: str, action: Callable[[TracksFile], None]) -> None:
        """Apply `action` to every file of `kind` in `directory`, saving the ones it modified."""
        stat_key = f"{kind.__name__.lower()}s_processed"
        bar = self.status_mgr.start_phase(desc, total=None)
        for tracks_file in kind.iter(directory):
            action(tracks_file)
            self.stats_mgr.increment(stat_key)
            if tracks_file.is_modified():
                self._save(tracks_file)
            bar.update()
        bar.close()

    def _repath_playlist(self, playlist: Playlist, edits: dict) -> None:
        try:
            playlist.repath(edits)
        except RepathError as e:
            self.stats_mgr.increment("repath_failures")
            self._fail(str(e))
            return
        self.logger.info(f"Repathed {', '.join(map(str, edits))} in {playlist}")
        self.stats_mgr.increment("tracks_repathed", len(edits))

    def _save(self, tracks_file: TracksFile) -> None:
        stat_key = f"{type(tracks_file).__name__.lower()}s_updated"
        if self.config_mgr.dry:
            self.logger.info(f"Dry run enabled. Changes to {tracks_file.path} will not be saved.")
            self.stats_mgr.increment(stat_key)
            return

        try:
            tracks_file.path.parent.mkdir(parents=True, exist_ok=True)
            tracks_file.write()
        except OSError as e:
            self.stats_mgr.increment("write_failures")
            self._fail(f"Failed to create directory for {tracks_file.path}: {e}")
            return
        except TracksFileError as e:
            self.stats_mgr.increment("write_failures")
            self._fail(f"{e}: {e.__cause__}")
            return

        self.logger.info(f"Saved {tracks_file.path}")
        self.stats_mgr.increment(stat_key)

    def _fail(self, message: str) -> None:
        self.logger.error(message)
        self.failed = True

    def print_summary(self) -> None:
        summary_lines = list(self.report)
        command = self.config_mgr.command

        if command != Command.SUMMARY:
            summary_lines.append("\nSummary:")
            summary_lines.append(f"- Playlists processed: {self.stats_mgr.get('playlists_processed')}")
            summary_lines.append(f"- Playlists updated: {self.stats_mgr.get('playlists_updated')}")
            summary_lines.append(f"- Playcounts processed: {self.stats_mgr.get('playcounts_processed')}")
            summary_lines.append(f"- Playcounts updated: {self.stats_mgr.get('playcounts_updated')}")

            detail = {
                Command.REMOVE: ("Tracks removed", "tracks_removed"),
                Command.REPATH: ("Tracks repathed", "tracks_repathed"),
                Command.RENAME: ("Entries renamed", "entries_renamed"),
                Command.MERGE: ("Duplicates merged", "duplicates_merged"),
                Command.COUNT: ("Plays recorded", "plays_recorded"),
            }[command]
            summary_lines.append(f"- {detail[0]}: {self.stats_mgr.get(detail[1])}")

            for label, key in (("Repaths rejected", "repath_failures"), ("Write failures", "write_failures")):
                if self.stats_mgr.get(key):
                    summary_lines.append(f"- {label}: {self.stats_mgr.get(key)}")

        if self.config_mgr.dry:
            summary_lines.append("\nThis was a DRY RUN - no changes were actually made.")

        for line in summary_lines:
            self.logger.debug(line)
            print(line)


def main() -> int:
    try:
        get_manager().initialize()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    agent = TrackFiles()
    exit_code = agent.run()
    agent.print_summary()
    return exit_code


if __name__ == "__main__":
    locale.setlocale(locale.LC_ALL, "")
    sys.exit(main())
