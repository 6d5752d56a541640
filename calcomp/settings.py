# calcomp/settings.py

from __future__ import annotations
from typing import Any, Dict, List, Optional
from pathlib import Path
import yaml

from loguru import logger
from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings

from .classifier import FallbackRules
from .constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_DEPARTMENT_SUFFIXES,
    DEFAULT_GRADE_LEVELS,
    DEFAULT_RANK_MODIFIERS,
    GROUP_KEYS,
    VALUE_FIELDS,
)
from .models import AggregateFilters


# --- Environment-level settings ---

class ReportSettings(BaseSettings):
    """Settings that may be overridden from the environment (CALCOMP_CONFIG_PATH, ...)."""
    config_path: Path = DEFAULT_CONFIG_PATH
    output_base_dir: Path = Path("output")
    log_level: str = "INFO"

    class Config:
        env_prefix = 'CALCOMP_'


# --- Per-project configuration (one block of config.yaml) ---

class CsvOptions(BaseModel):
    sep: Optional[str] = ","
    encoding: str = "utf-8"
    encoding_errors: str = "replace"


class ClassificationConfig(BaseModel):
    rank_modifiers: List[str] = list(DEFAULT_RANK_MODIFIERS)
    department_suffixes: List[str] = list(DEFAULT_DEPARTMENT_SUFFIXES)
    grade_levels: List[str] = list(DEFAULT_GRADE_LEVELS)

    def to_rules(self) -> FallbackRules:
        return FallbackRules.from_lists(self.rank_modifiers, self.department_suffixes, self.grade_levels)


class ProjectConfig(BaseModel):
    description: str = ""
    analysis_module: str = "analyses.uc_compensation"
    input_files: Dict[int, Path] = {}
    mapping_file: Path
    output_dir: str = "uc_compensation"
    agency: str = ""
    csv: CsvOptions = CsvOptions()
    group_key: str = "category"
    value_field: str = "total_pay"
    min_count: Optional[int] = None
    min_mean: Optional[float] = None
    enrollment: Dict[int, int] = {}
    classification: ClassificationConfig = ClassificationConfig()

    @field_validator("value_field")
    @classmethod
    def validate_value_field(cls, v: str) -> str:
        if v not in VALUE_FIELDS:
            raise ValueError(f"value_field must be one of {VALUE_FIELDS}")
        return v

    @field_validator("group_key")
    @classmethod
    def validate_group_key(cls, v: str) -> str:
        if v not in GROUP_KEYS:
            raise ValueError(f"group_key must be one of {GROUP_KEYS}")
        return v

    @property
    def filters(self) -> AggregateFilters:
        return AggregateFilters(min_count=self.min_count, min_mean=self.min_mean)

    @property
    def years(self) -> List[int]:
        return sorted(self.input_files)

    def resolve_paths(self, base_dir: Path) -> "ProjectConfig":
        """Returns a copy whose relative file paths are anchored at base_dir."""
        def _anchor(p: Path) -> Path:
            return p if p.is_absolute() else base_dir / p
        return self.model_copy(update={
            "input_files": {year: _anchor(path) for year, path in self.input_files.items()},
            "mapping_file": _anchor(self.mapping_file),
        })


def read_yaml_file(path: str | Path) -> Dict[str, Any]:
    """Reads a YAML file into a dict (empty dict for an empty file)."""
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_project_config(project_key: str, config_path: str | Path | None = None) -> ProjectConfig:
    """
    Loads and validates one project block of config.yaml.

    Relative paths inside the block are resolved against the directory of
    the config file. Raises KeyError for an unknown project key.
    """
    path = Path(config_path) if config_path else ReportSettings().config_path
    config = read_yaml_file(path)
    if project_key not in config:
        raise KeyError(f"Project key '{project_key}' not found in {path}. Available: {list(config.keys())}")
    project = ProjectConfig.model_validate(config[project_key])
    logger.debug(f"Loaded project '{project_key}' from {path}")
    return project.resolve_paths(path.resolve().parent)
