from housekeeper.application.runner.contracts import (
    DEFAULT_BRANCH,
    HOUSEKEEPER_LABEL,
    RunnerConfig,
    RunnerDependencies,
    RunnerResult,
)
from housekeeper.application.runner.use_case import Runner

__all__ = [
    "DEFAULT_BRANCH",
    "HOUSEKEEPER_LABEL",
    "Runner",
    "RunnerConfig",
    "RunnerDependencies",
    "RunnerResult",
]
