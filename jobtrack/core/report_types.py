"""Report family definitions.

Each supported export family is described by a :class:`ReportConfiguration`
loaded from ``config/report_types.yaml``. The analytics stages are generic;
field names, status taxonomies and priority tables all come from here.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from jobtrack.core.normalize import key
from jobtrack.core.validation import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "report_types.yaml"
CONFIG_ENV_VAR = "JOBTRACK_REPORT_TYPES"


class FieldMap(BaseModel):
    identifier: str
    assignee: str
    status: str
    created: str
    assigned: str | None = None
    finished: str | None = None
    category: str | None = None
    sub_category: str | None = None
    sla_status: str | None = None
    ftr_status: str | None = None
    department: str | None = None
    job_type: str | None = None
    cancellation_reason: str | None = None
    stock: str | None = None

    def roles(self) -> dict[str, str]:
        return {role: header for role, header in self.model_dump().items() if header}


class DepartmentRules(BaseModel):
    installations: str
    faults: str
    fault_keyword: str = "fault"
    scope: list[str] = Field(default_factory=list)

    @field_validator("fault_keyword")
    @classmethod
    def _lower_keyword(cls, value: str) -> str:
        return key(value)

    @field_validator("scope")
    @classmethod
    def _lower_scope(cls, value: list[str]) -> list[str]:
        return [key(item) for item in value]

    def normalise(self, raw: str) -> str:
        return self.faults if self.fault_keyword in key(raw) else self.installations

    def in_scope(self, raw: str) -> bool:
        if not self.scope:
            return True
        lowered = key(raw)
        return any(fragment in lowered for fragment in self.scope)

    @property
    def labels(self) -> list[str]:
        return [self.installations, self.faults]


class ReportConfiguration(BaseModel):
    name: Literal["ICT", "DPlus"]
    label: str
    assignee_label: str = "Technician"
    category_label: str = "Category"
    required_headers: list[str]
    columns: FieldMap
    duration_model: Literal["lifecycle", "department"] = "lifecycle"
    success_statuses: list[str]
    failure_statuses: list[str] = Field(default_factory=list)
    cancelled_statuses: list[str] = Field(default_factory=list)
    pending_statuses: list[str] | None = None
    status_priority: dict[str, int] = Field(default_factory=dict)
    require_dates: bool = False
    exclusions: dict[str, list[str]] = Field(default_factory=dict)
    departments: DepartmentRules | None = None
    job_type_counters: dict[str, str] = Field(default_factory=dict)
    stock_job_types: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("success_statuses", "failure_statuses", "cancelled_statuses")
    @classmethod
    def _lower_statuses(cls, value: list[str]) -> list[str]:
        return [key(item) for item in value]

    @field_validator("pending_statuses")
    @classmethod
    def _lower_pending(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [key(item) for item in value]

    @field_validator("status_priority")
    @classmethod
    def _lower_priority(cls, value: dict[str, int]) -> dict[str, int]:
        return {key(status): priority for status, priority in value.items()}

    @field_validator("exclusions")
    @classmethod
    def _lower_exclusions(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        return {role: [key(item) for item in items] for role, items in value.items()}

    @field_validator("job_type_counters", "stock_job_types")
    @classmethod
    def _lower_values(cls, value: dict[str, str]) -> dict[str, str]:
        return {name: key(fragment) for name, fragment in value.items()}

    def is_success(self, status: str) -> bool:
        return status in self.success_statuses

    def is_failure(self, status: str) -> bool:
        return status in self.failure_statuses

    def is_cancelled(self, status: str) -> bool:
        return status in self.cancelled_statuses

    def is_pending(self, status: str) -> bool:
        if self.pending_statuses is None:
            terminal = self.success_statuses + self.failure_statuses + self.cancelled_statuses
            return bool(status) and status not in terminal
        return status in self.pending_statuses

    def priority(self, status: str) -> int:
        return self.status_priority.get(status, 0)


def _config_path(path: Path | str | None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_report_types(path: Path | str | None = None) -> list[ReportConfiguration]:
    """Load every report family, in detection order."""

    source = _config_path(path)
    if not source.exists():
        raise ConfigurationError(f"report type configuration not found: {source}")
    with source.open("r", encoding="utf-8") as fp:
        payload = yaml.safe_load(fp) or {}

    entries = payload.get("report_types") if isinstance(payload, dict) else None
    if not entries:
        raise ConfigurationError(f"no report_types defined in {source}")
    try:
        configurations = [ReportConfiguration(**entry) for entry in entries]
    except (TypeError, ValidationError) as exc:
        raise ConfigurationError(f"invalid report type configuration in {source}: {exc}") from exc

    logger.debug("Loaded %d report types from %s", len(configurations), source)
    return configurations


REPORT_TYPES = load_report_types()


def get_report_type(name: str, configurations: list[ReportConfiguration] | None = None) -> ReportConfiguration:
    for configuration in configurations or REPORT_TYPES:
        if configuration.name == name:
            return configuration
    raise ConfigurationError(f"unknown report type: {name}")
