from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Final, Union
from os import PathLike

import json5  # type: ignore
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Optional section name inside a larger config document.
CONFIG_SECTION_KEY: Final[str] = "change_chunks"

DEFAULT_MAX_SEARCH_LINES: Final[int] = 100
DEFAULT_MIN_CONFIDENCE: Final[float] = 0.7


class LogLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"
    critical = "critical"


class ChangeChunkConfig(BaseModel):
    """
    Run parameters for one engine invocation.

    - case_sensitive: compare anchors case-sensitively
    - preserve_whitespace: compare anchors without trimming or collapsing whitespace
    - max_search_lines: how many document lines each matcher scans from the top
    - min_confidence: acceptance threshold for an anchor match
    - rollback_on_error: discard the working copy when any chunk fails to apply
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    case_sensitive: bool = True
    preserve_whitespace: bool = False
    max_search_lines: int = Field(default=DEFAULT_MAX_SEARCH_LINES)
    min_confidence: float = Field(default=DEFAULT_MIN_CONFIDENCE)
    rollback_on_error: bool = True

    @field_validator("max_search_lines")
    @classmethod
    def _validate_max_search_lines(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_search_lines must be >= 1, got {v}")
        return v

    @field_validator("min_confidence")
    @classmethod
    def _validate_min_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"min_confidence must be within [0, 1], got {v}")
        return v


def _read_document(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return yaml.safe_load(text)
    if suffix == ".json5":
        return json5.loads(text)
    if suffix == ".json":
        return json.loads(text)
    raise ValueError(f"Unsupported config file extension: {path.suffix!r}")


def load_config(path: Union[str, PathLike[str]]) -> ChangeChunkConfig:
    """
    Load a ChangeChunkConfig from a YAML, JSON5 or JSON file.

    The document may hold the options at the top level or nested under a
    ``change_chunks`` key. An empty file yields the defaults.
    """
    doc = _read_document(Path(path))
    if doc is None:
        return ChangeChunkConfig()
    if not isinstance(doc, dict):
        raise ValueError(f"Config root must be a mapping, got {type(doc).__name__}")
    section: Dict[str, Any] = doc.get(CONFIG_SECTION_KEY, doc)
    if section is None:
        return ChangeChunkConfig()
    return ChangeChunkConfig.model_validate(section)
