from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


class ChangeType(Enum):
    ADD = "+"
    REMOVE = "-"
    CONTEXT = " "


@dataclass(frozen=True)
class ChangeOperation:
    type: ChangeType
    content: str


@dataclass(frozen=True)
class ParsedChunk:
    # Marker with '@@' tokens stripped and trimmed
    context_marker: str
    changes: Tuple[ChangeOperation, ...] = ()

    def _of(self, kind: ChangeType) -> Tuple[ChangeOperation, ...]:
        return tuple(c for c in self.changes if c.type == kind)

    @property
    def additions(self) -> Tuple[ChangeOperation, ...]:
        return self._of(ChangeType.ADD)

    @property
    def removals(self) -> Tuple[ChangeOperation, ...]:
        return self._of(ChangeType.REMOVE)

    @property
    def context_lines(self) -> Tuple[ChangeOperation, ...]:
        return self._of(ChangeType.CONTEXT)

    @property
    def has_additions(self) -> bool:
        return any(c.type == ChangeType.ADD for c in self.changes)

    @property
    def has_removals(self) -> bool:
        return any(c.type == ChangeType.REMOVE for c in self.changes)


@dataclass(frozen=True)
class MatchResult:
    found: bool
    line_number: int  # 0-indexed, -1 when not found
    confidence: float  # 0.0 to 1.0
    reason: str
    strategy: str = ""

    @classmethod
    def not_found(cls, reason: str, strategy: str = "") -> "MatchResult":
        return cls(
            found=False, line_number=-1, confidence=0.0, reason=reason, strategy=strategy
        )


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ApplyResult:
    success: bool
    modified_lines: Tuple[str, ...]
    applied_changes: Tuple[str, ...] = ()
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one engine run. The only value handed back to callers."""

    success: bool
    original_content: str
    modified_content: str
    applied_changes: Tuple[str, ...] = ()
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_changes(self) -> bool:
        return self.original_content != self.modified_content

    def get_summary(self) -> str:
        if not self.success:
            return (
                f"Failed to apply changes: {len(self.errors)} error(s), "
                f"{len(self.warnings)} warning(s)"
            )
        if not self.has_changes:
            return "No changes applied"
        return (
            f"Applied {len(self.applied_changes)} change chunk(s) with "
            f"{len(self.warnings)} warning(s)"
        )

    def get_detailed_report(self) -> Dict[str, Any]:
        report: Dict[str, Any] = {
            "success": self.success,
            "has_changes": self.has_changes,
            "summary": self.get_summary(),
            "applied_changes": list(self.applied_changes),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }
        lines: List[str] = self.modified_content.split("\n") if self.modified_content else []
        original: List[str] = self.original_content.split("\n") if self.original_content else []
        report["line_count"] = {"original": len(original), "modified": len(lines)}
        return report
