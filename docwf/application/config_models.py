"""Engine configuration model.

Config structure (``.docwf/config.yml``)::

    docs_dir: docs/project
    github_repo: owner/name
    provider: file
    provider_config:
      default: responses/latest.txt
    commit_limit: 20
    log_trim_threshold: 15000
    hints_enabled: true
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docwf.domain.constants import DEFAULT_COMMIT_LIMIT, LARGE_LOG_THRESHOLD


class EngineConfig(BaseModel):
    """Resolved engine settings after all config layers are merged."""

    model_config = ConfigDict(extra="forbid")

    docs_dir: str = "."
    github_repo: str | None = None
    provider: str = "manual"
    provider_config: dict[str, Any] = Field(default_factory=dict)
    commit_limit: int = Field(default=DEFAULT_COMMIT_LIMIT, gt=0)
    log_trim_threshold: int = Field(default=LARGE_LOG_THRESHOLD, gt=0)
    hints_enabled: bool = True

    @field_validator("github_repo")
    @classmethod
    def _blank_repo_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None
