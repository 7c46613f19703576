from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config_manager import ConfigManager
    from .log_manager import LogManager
    from .stats_manager import StatsManager, StatusManager


class Manager:
    _instance = None
    _initialized = None

    def __new__(self) -> "Manager":
        if self._instance is None:
            self._instance = super(Manager, self).__new__(self)
        return self._instance

    def initialize(self) -> None:
        from .config_manager import ConfigManager
        from .log_manager import LogManager
        from .stats_manager import StatsManager, StatusManager

        if self._initialized:
            return

        self._config = ConfigManager()
        self._log = LogManager()
        self._stats = StatsManager()
        self._status = StatusManager()

        self._logger = self._log.setup_logging(self._config.log)
        self._initialized = True

    def get_stats_manager(self) -> "StatsManager":
        return self._stats

    def get_status_manager(self) -> "StatusManager":
        return self._status

    def get_config_manager(self) -> "ConfigManager":
        return self._config

    def get_log_manager(self) -> "LogManager":
        return self._log


def get_manager() -> Manager:
    return Manager()


manager = get_manager()
