import logging
import re
from typing import Any, Iterable

from housekeeper.infrastructure.observability.context import get_run_id


_TOKEN_PATTERNS = (
    re.compile(r"(PRIVATE-TOKEN['\"]?\s*[:=]\s*['\"]?)[^'\"\s,}]+", re.IGNORECASE),
    re.compile(r"(Bearer\s+)[A-Za-z0-9_\-.]+", re.IGNORECASE),
    re.compile(r"(oauth2:)[^@\s]+", re.IGNORECASE),
    re.compile(r"\bglpat-[A-Za-z0-9_\-]+"),
)
_REGISTERED_SENSITIVE_VALUES: set[str] = set()


def register_sensitive_values(*values: str | None) -> None:
    for value in values:
        if value:
            _REGISTERED_SENSITIVE_VALUES.add(value)


def _sensitive_values() -> Iterable[str]:
    return _REGISTERED_SENSITIVE_VALUES


def redact_secrets(text: str) -> str:
    redacted = text
    for value in _sensitive_values():
        redacted = redacted.replace(value, "[REDACTED]")
    for pattern in _TOKEN_PATTERNS:
        if pattern.groups > 0:
            redacted = pattern.sub(r"\1[REDACTED]", redacted)
        else:
            redacted = pattern.sub("[REDACTED]", redacted)
    return redacted


def _install_run_id_factory() -> None:
    # Every record carries the run id, whichever handler ends up formatting it.
    previous_factory = logging.getLogRecordFactory()
    if getattr(previous_factory, "stamps_run_id", False):
        return

    def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
        record = previous_factory(*args, **kwargs)
        record.run_id = get_run_id()
        return record

    record_factory.stamps_run_id = True  # type: ignore[attr-defined]
    logging.setLogRecordFactory(record_factory)


def configure_logging(level: int = logging.INFO) -> None:
    _install_run_id_factory()
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [run_id=%(run_id)s] %(name)s - %(message)s",
        )


def safe_message(message: str) -> str:
    return redact_secrets(message)


def _format_field_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return safe_message(value)
    return safe_message(repr(value))


def structured_message(event: str, **fields: Any) -> str:
    parts = [f"event={safe_message(event)}"]
    for key, value in fields.items():
        if value is None:
            continue
        formatted_value = _format_field_value(value).replace('"', '\\"')
        parts.append(f'{key}="{formatted_value}"')
    return " ".join(parts)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    logger.log(level, structured_message(event, **fields))
