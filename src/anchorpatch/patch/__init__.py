from __future__ import annotations

import json
import pathlib
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from anchorpatch.logger import logger
from anchorpatch.settings import ChangeChunkConfig
from .applier import ChunkApplier
from .errors import ChunkApplyError, PatchError, PatchPathError
from .matcher import ContextMatcher
from .models import (
    ApplyResult,
    ChangeOperation,
    ChangeType,
    MatchResult,
    ParsedChunk,
    ProcessResult,
    ValidationResult,
)
from .parser import ChunkParser, split_into_lines
from .processor import ChangeChunkProcessor
from .request import FileApplyPatchChunk, FileApplyPatchRequest
from .strategies import (
    ExactMatcher,
    MatchStrategy,
    UnicodeNormalizingMatcher,
    WhitespaceTolerantMatcher,
    default_strategies,
)
from .validator import ChangeValidator


class PatchFileOps(ABC):
    """
    Abstract contract for file operations used by apply_patch_file.
    Implementations must handle path safety and track the changes map.
    """

    @abstractmethod
    def exists(self, rel: str) -> bool: ...

    @abstractmethod
    def is_dir(self, rel: str) -> bool: ...

    @abstractmethod
    def open(self, rel: str) -> str: ...

    @abstractmethod
    def write(self, rel: str, content: str) -> None: ...

    @property
    @abstractmethod
    def changes_map(self) -> Dict[str, str]:
        """A map of relative file paths to change kind ('updated')."""
        ...


class FileSystemPatchFileOps(PatchFileOps):
    """
    File-backed implementation that enforces path safety under base_path and
    records which files were rewritten.
    """

    def __init__(self, base_path: pathlib.Path):
        self._base_path = base_path
        self._changes: Dict[str, str] = {}

    def _resolve_safe_path(self, rel: str) -> pathlib.Path:
        if rel.startswith("/") or rel.startswith("~") or rel.startswith("\\"):
            raise PatchPathError(f"Absolute paths are not allowed: {rel}")
        abs_path = (self._base_path / rel).resolve()
        base_resolved = self._base_path.resolve()
        if abs_path == base_resolved or base_resolved in abs_path.parents:
            return abs_path
        raise PatchPathError(f"Path escapes project root: {rel}")

    def exists(self, rel: str) -> bool:
        return self._resolve_safe_path(rel).exists()

    def is_dir(self, rel: str) -> bool:
        return self._resolve_safe_path(rel).is_dir()

    def open(self, rel: str) -> str:
        path = self._resolve_safe_path(rel)
        # newline="" keeps CR/CRLF so the engine sees the real line endings
        with path.open("rt", encoding="utf-8", newline="") as fh:
            return fh.read()

    def write(self, rel: str, content: str) -> None:
        path = self._resolve_safe_path(rel)
        with path.open("wt", encoding="utf-8", newline="") as fh:
            fh.write(content)
        self._changes[rel] = "updated"

    @property
    def changes_map(self) -> Dict[str, str]:
        return self._changes


class FileApplyPatchResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    applied_changes: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    summary: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def to_json(self) -> str:
        return json.dumps(self.model_dump(exclude_none=True), indent=2)


def _error(message: str, details: Optional[Dict[str, Any]] = None) -> FileApplyPatchResponse:
    return FileApplyPatchResponse(success=False, error=message, details=details)


def _restore_line_endings(original: str, modified: str) -> str:
    eol = "\r\n" if "\r\n" in original else ("\r" if "\r" in original else "\n")
    if eol != "\n":
        modified = modified.replace("\n", eol)
    if original.endswith(("\n", "\r")):
        modified += eol
    return modified


def apply_patch_file(
    request: FileApplyPatchRequest,
    base_path: pathlib.Path,
    *,
    ops: Optional[PatchFileOps] = None,
    config: Optional[ChangeChunkConfig] = None,
    processor: Optional[ChangeChunkProcessor] = None,
) -> FileApplyPatchResponse:
    """
    Read request.path under base_path, apply its chunks and write the result
    back when the content changed. Never raises for expected failures.
    """
    file_ops = ops or FileSystemPatchFileOps(base_path)
    engine = processor or ChangeChunkProcessor()
    cfg = config or ChangeChunkConfig()
    path = request.path

    logger.info("Processing file apply patch", path=path, chunks=len(request.chunks))

    try:
        if not file_ops.exists(path):
            return _error(f"Error: File '{path}' does not exist")
        if file_ops.is_dir(path):
            return _error(f"Error: '{path}' is a directory, not a file")
    except PatchPathError as e:
        return _error(f"Error: {e}")

    if not request.chunks:
        return _error("Error: No change chunks provided")

    try:
        original = file_ops.open(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error reading file for patch application", path=path, err=str(e))
        return _error(f"Error: Could not read file '{path}': {e}")

    result = engine.process_changes(request, cfg, original)
    if not result.success:
        return _error(
            f"Failed to apply patch: {', '.join(result.errors)}",
            result.get_detailed_report(),
        )

    if not result.has_changes:
        return FileApplyPatchResponse(
            success=True,
            message="No changes were needed - file content already matches target state",
            warnings=list(result.warnings),
        )

    try:
        file_ops.write(path, _restore_line_endings(original, result.modified_content))
    except OSError as e:
        logger.error("Error writing patched file", path=path, err=str(e))
        return _error(f"Error: Could not write modified content to '{path}': {e}")

    logger.info(
        "Successfully applied patch to file",
        path=path,
        applied_changes=list(result.applied_changes),
        warnings=list(result.warnings),
    )
    return FileApplyPatchResponse(
        success=True,
        message=f"Successfully applied {len(request.chunks)} change chunks to '{path}'",
        applied_changes=list(result.applied_changes),
        warnings=list(result.warnings),
        summary=result.get_summary(),
    )


__all__ = [
    "ApplyResult",
    "ChangeChunkProcessor",
    "ChangeOperation",
    "ChangeType",
    "ChangeValidator",
    "ChunkApplier",
    "ChunkApplyError",
    "ChunkParser",
    "ContextMatcher",
    "ExactMatcher",
    "FileApplyPatchChunk",
    "FileApplyPatchRequest",
    "FileApplyPatchResponse",
    "FileSystemPatchFileOps",
    "MatchResult",
    "MatchStrategy",
    "ParsedChunk",
    "PatchError",
    "PatchFileOps",
    "PatchPathError",
    "ProcessResult",
    "UnicodeNormalizingMatcher",
    "ValidationResult",
    "WhitespaceTolerantMatcher",
    "apply_patch_file",
    "default_strategies",
    "split_into_lines",
]
