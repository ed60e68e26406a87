import os
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from housekeeper.domain.errors import configuration_error


FORK_PROJECT_ID_ENV = "HOUSEKEEPER_FORK_PROJECT_ID"
TARGET_PROJECT_ID_ENV = "HOUSEKEEPER_TARGET_PROJECT_ID"
REMOTE_ENV = "HOUSEKEEPER_REMOTE"


class HousekeeperSettings(BaseModel):
    keeps: list[str] = Field(..., min_length=1)
    max_mrs: int = Field(default=1, gt=0)
    filter_identifiers: list[str] = Field(default_factory=list)
    target_branch: str = Field(default="master", min_length=1)
    base_branch: str = Field(default="master", min_length=1)
    dry_run: bool = False
    source_project_id: str = Field(..., min_length=1)
    target_project_id: str = Field(..., min_length=1)
    remote: str = Field(default="housekeeper", min_length=1)

    @field_validator("filter_identifiers")
    @classmethod
    def _patterns_must_compile(cls, patterns: list[str]) -> list[str]:
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as error:
                raise ValueError(f"invalid filter pattern '{pattern}': {error}") from error
        return patterns


def _format_validation_error(error: ValidationError) -> str:
    details = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "settings"
        details.append(f"{location}: {item['msg']}")
    return "; ".join(details)


def load_settings(**cli_values: Any) -> HousekeeperSettings:
    # Valores de CLI ausentes (None) ficam com o default do modelo.
    values = {key: value for key, value in cli_values.items() if value is not None}
    values.setdefault("source_project_id", os.getenv(FORK_PROJECT_ID_ENV, ""))
    values.setdefault("target_project_id", os.getenv(TARGET_PROJECT_ID_ENV, ""))
    remote = os.getenv(REMOTE_ENV)
    if remote:
        values.setdefault("remote", remote)

    try:
        return HousekeeperSettings(**values)
    except ValidationError as error:
        raise configuration_error(_format_validation_error(error)) from error
