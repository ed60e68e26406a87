from housekeeper.infrastructure.observability.logging_utils import configure_logging, log_event
from housekeeper.infrastructure.observability.runner_observer import (
    log_configuration_error,
    observe_change_details,
    observe_runner_step,
)

__all__ = [
    "configure_logging",
    "log_event",
    "observe_change_details",
    "observe_runner_step",
    "log_configuration_error",
]
