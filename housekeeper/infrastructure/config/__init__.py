from housekeeper.infrastructure.config.keep_loader import load_keep, load_keeps
from housekeeper.infrastructure.config.runner_factory import (
    build_runner_config,
    build_runner_dependencies,
)
from housekeeper.infrastructure.config.settings import HousekeeperSettings, load_settings

__all__ = [
    "HousekeeperSettings",
    "build_runner_config",
    "build_runner_dependencies",
    "load_keep",
    "load_keeps",
    "load_settings",
]
