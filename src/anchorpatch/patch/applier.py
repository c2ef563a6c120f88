from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

from anchorpatch.logger import logger
from anchorpatch.settings import ChangeChunkConfig
from .errors import ChunkApplyError
from .models import ApplyResult, ChangeOperation, ChangeType, MatchResult, ParsedChunk
from .validator import ChangeValidator, ChunkSpan

# Symmetric window used to re-find a drifted context line
CONTEXT_SEARCH_RANGE = 5
# Removals look further ahead, then briefly behind the cursor
REMOVE_FORWARD_RANGE = 10
REMOVE_BACKWARD_RANGE = 2


class AnchorMatcher(Protocol):
    def find_best_match(
        self, lines: Sequence[str], marker: str, config: ChangeChunkConfig
    ) -> MatchResult: ...


@dataclass
class _ChunkOutcome:
    summary: str
    warnings: List[str]


def _same(a: str, b: str) -> bool:
    return a.strip() == b.strip()


def find_matching_line(content: str, lines: Sequence[str], position: int) -> int:
    start = max(0, position - CONTEXT_SEARCH_RANGE)
    end = min(len(lines), position + CONTEXT_SEARCH_RANGE)
    for i in range(start, end):
        if _same(lines[i], content):
            return i
    return -1


def find_matching_line_forward(content: str, lines: Sequence[str], position: int) -> int:
    end = min(len(lines), position + REMOVE_FORWARD_RANGE)
    for i in range(position, end):
        if _same(lines[i], content):
            return i
    for i in range(max(0, position - REMOVE_BACKWARD_RANGE), min(position, len(lines))):
        if _same(lines[i], content):
            return i
    return -1


class _CursorWalk:
    """
    Replays one chunk's operations from its anchor over a copy of the lines.

    Alongside the buffer it keeps the source index of every slot (None for
    inserted lines), so the walk can report which source lines it touched.
    """

    def __init__(self, lines: Sequence[str], position: int) -> None:
        self.buf: List[str] = list(lines)
        self._size = len(self.buf)
        self.origin: List[Optional[int]] = list(range(len(self.buf)))
        self.cursor = position
        self.added = 0
        self.removed = 0
        self.notes: List[str] = []
        self._first: Optional[int] = None
        self._last: Optional[int] = None

    def _touch(self, start: int, end: int) -> None:
        self._first = start if self._first is None else min(self._first, start)
        self._last = end if self._last is None else max(self._last, end)

    def _boundary(self, pos: int) -> int:
        # Source index of the first original slot at or after pos
        for slot in self.origin[pos:]:
            if slot is not None:
                return slot
        return self._size

    def span(self, default: int) -> Tuple[int, int]:
        if self._first is None or self._last is None:
            return default, default
        return self._first, self._last

    def run(self, changes: Sequence[ChangeOperation]) -> None:
        for change in changes:
            kind = change.type
            if kind == ChangeType.CONTEXT:
                self._context(change)
            elif kind == ChangeType.REMOVE:
                self._remove(change)
            elif kind == ChangeType.ADD:
                self._touch(self._boundary(self.cursor), self._boundary(self.cursor))
                self.buf.insert(self.cursor, change.content)
                self.origin.insert(self.cursor, None)
                self.cursor += 1
                self.added += 1
            else:
                raise ChunkApplyError(f"unknown change type: {kind!r}")

    def _context(self, change: ChangeOperation) -> None:
        if self.cursor >= len(self.buf):
            return
        expected = change.content.strip()
        # An empty expected line matches anything
        if expected and self.buf[self.cursor].strip() != expected:
            found = find_matching_line(change.content, self.buf, self.cursor)
            if found != -1:
                self.cursor = found
        slot = self.origin[self.cursor]
        if slot is not None:
            self._touch(slot, slot + 1)
        self.cursor += 1

    def _remove(self, change: ChangeOperation) -> None:
        target = find_matching_line_forward(change.content, self.buf, self.cursor)
        if target == -1:
            self.notes.append(
                f"Line to remove not found near line {self.cursor}: "
                f"{change.content.strip()!r}"
            )
            return
        slot = self.origin[target]
        if slot is not None:
            self._touch(slot, slot + 1)
        del self.buf[target]
        del self.origin[target]
        self.removed += 1
        if target < self.cursor:
            self.cursor -= 1


class ChunkApplier:
    """
    Resolves every chunk's anchor, then splices chunks into a working copy
    from the bottom of the document upward so that earlier anchors stay valid.
    """

    def __init__(self, validator: Optional[ChangeValidator] = None) -> None:
        self._validator = validator or ChangeValidator()

    def apply(
        self,
        chunks: Sequence[ParsedChunk],
        lines: Sequence[str],
        matcher: AnchorMatcher,
        config: ChangeChunkConfig,
    ) -> ApplyResult:
        original = tuple(lines)

        # Phase 1: resolve all anchors against the untouched document
        resolved: List[Tuple[int, ParsedChunk, int]] = []
        errors: List[str] = []
        warnings: List[str] = []
        for idx, chunk in enumerate(chunks):
            match = matcher.find_best_match(original, chunk.context_marker, config)
            if not match.found:
                errors.append(
                    f"Could not locate context marker {chunk.context_marker!r} "
                    f"(chunk {idx + 1}): {match.reason}"
                )
                continue
            if match.confidence < 1.0:
                warnings.append(
                    f"Context marker {chunk.context_marker!r} matched at line "
                    f"{match.line_number} using {match.strategy or 'fuzzy'} matching "
                    f"(confidence {match.confidence:.2f})"
                )
            resolved.append((idx, chunk, match.line_number))

        if errors:
            logger.warning("Unresolved context markers", count=len(errors))
            return ApplyResult(
                success=False,
                modified_lines=original,
                errors=("Some context markers could not be located", *errors),
                warnings=tuple(warnings),
            )

        spans: List[ChunkSpan] = [
            (idx, *self.footprint(chunk, original, position))
            for idx, chunk, position in resolved
        ]
        overlaps = self._validator.detect_overlaps(spans)
        if overlaps:
            logger.warning("Overlapping change chunks", count=len(overlaps))
            return ApplyResult(
                success=False,
                modified_lines=original,
                errors=tuple(overlaps),
                warnings=tuple(warnings),
            )

        # Phase 2: bottom-up; stable sort keeps request order among equal anchors
        resolved.sort(key=lambda item: item[2], reverse=True)
        working: List[str] = list(original)
        applied: List[str] = []
        for idx, chunk, position in resolved:
            # Apply-time failure hook: matchers other than ContextMatcher may
            # resolve anchors the working copy cannot take.
            try:
                outcome = self._apply_chunk(chunk, working, position)
            except ChunkApplyError as e:
                logger.warning("Chunk apply failed", chunk=idx + 1, position=position, err=str(e))
                errors.append(f"Failed to apply chunk at position {position}: {e}")
                continue
            applied.append(outcome.summary)
            warnings.extend(outcome.warnings)

        if errors and config.rollback_on_error:
            warnings.append(
                f"Rolled back {len(applied)} applied chunk(s) after apply errors"
            )
            return ApplyResult(
                success=False,
                modified_lines=original,
                errors=tuple(errors),
                warnings=tuple(warnings),
            )

        return ApplyResult(
            success=not errors,
            modified_lines=tuple(working),
            applied_changes=tuple(applied),
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    @staticmethod
    def footprint(chunk: ParsedChunk, lines: Sequence[str], position: int) -> Tuple[int, int]:
        """
        Dry-run the chunk on ``lines`` and return the half-open range of
        source lines it reads or rewrites. Pure insertions give an empty
        range at the insertion point.
        """
        if position < 0 or position > len(lines):
            return position, position
        walk = _CursorWalk(lines, position)
        walk.run(chunk.changes)
        return walk.span(position)

    def _apply_chunk(
        self, chunk: ParsedChunk, lines: List[str], position: int
    ) -> _ChunkOutcome:
        """
        Walk the chunk's operations from the anchor. ``lines`` is replaced in
        place only after the whole chunk was walked, so a raised
        ChunkApplyError leaves it untouched.
        """
        if position < 0 or position > len(lines):
            raise ChunkApplyError(
                f"anchor line {position} is outside the document (0..{len(lines)})"
            )

        walk = _CursorWalk(lines, position)
        walk.run(chunk.changes)

        lines[:] = walk.buf
        logger.debug("Chunk applied", position=position, added=walk.added, removed=walk.removed)
        return _ChunkOutcome(
            summary=(
                f"Applied chunk at position {position}: "
                f"+{walk.added} -{walk.removed} lines"
            ),
            warnings=walk.notes,
        )
