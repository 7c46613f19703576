from tqdm import tqdm


class StatusManager:
    """Hands out the progress bar for the batch phase currently running."""

    def __init__(self):
        self.bars = {}

    class PhaseBar(tqdm):
        """Progress bar that forgets its phase once closed"""

        def __init__(self, handler: "StatusManager", desc: str, **kwargs):
            super().__init__(desc=desc, **kwargs)
            self.handler = handler
            self.phase = desc

        def close(self) -> None:
            super().close()
            if self.handler.bars.get(self.phase) is self:
                del self.handler.bars[self.phase]

    def start_phase(self, desc: str, total: int | None = None, unit: str = " file") -> tqdm:
        if desc in self.bars:
            self.bars[desc].close()

        bar = self.PhaseBar(handler=self, desc=desc, total=total, unit=unit, leave=True, dynamic_ncols=True)
        self.bars[desc] = bar
        return bar


class StatsManager:
    """Counters reported in the end-of-run summary"""

    KEYS = (
        "playlists_processed",
        "playlists_updated",
        "playcounts_processed",
        "playcounts_updated",
        "tracks_removed",
        "tracks_repathed",
        "entries_renamed",
        "duplicates_merged",
        "plays_recorded",
        "write_failures",
        "repath_failures",
    )

    def __init__(self):
        self.stats = dict.fromkeys(self.KEYS, 0)

    def increment(self, key: str, amount: int = 1) -> None:
        self.stats[key] = self.stats.get(key, 0) + amount

    def get(self, key: str) -> int:
        return self.stats.get(key, 0)
