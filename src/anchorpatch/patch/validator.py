from __future__ import annotations

from typing import List, Sequence, Set, Tuple

from .models import ChangeType, ParsedChunk, ValidationResult

# (chunk index in request order, first source line, end of range)
ChunkSpan = Tuple[int, int, int]


class ChangeValidator:
    """
    Static checks over a batch of parsed chunks, run before any mutation.
    Every chunk is checked and all problems are reported together.
    """

    def validate(
        self, chunks: Sequence[ParsedChunk], lines: Sequence[str]
    ) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []
        existing: Set[str] = {line.strip() for line in lines}

        for idx, chunk in enumerate(chunks, start=1):
            if not chunk.context_marker:
                errors.append(f"Chunk {idx}: context marker is empty")
            if not chunk.changes:
                errors.append(f"Chunk {idx}: no changes provided")
                continue

            for change in chunk.changes:
                if change.type != ChangeType.REMOVE:
                    continue
                # Global existence only; position is settled during apply
                if change.content.strip() not in existing:
                    errors.append(
                        f"Chunk {idx}: line to remove not found in document: "
                        f"{change.content.strip()!r}"
                    )

            if not chunk.has_additions and not chunk.has_removals:
                warnings.append(
                    f"Chunk {idx}: contains only context lines and changes nothing"
                )

        return ValidationResult(
            is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings)
        )

    def detect_overlaps(self, spans: Sequence[ChunkSpan]) -> List[str]:
        """
        Report chunk pairs whose source ranges intersect. Ranges are half-open
        and come from a dry run of each chunk on the original lines, so
        chunks on neighbouring lines never conflict. Two pure insertions at
        the same point also conflict.
        """
        ordered = sorted((start, end, idx) for idx, start, end in spans)
        overlaps: List[str] = []
        for i, (s1, e1, idx1) in enumerate(ordered):
            for s2, e2, idx2 in ordered[i + 1 :]:
                if s2 > e1:
                    break
                if s2 < e1 or (s1, e1) == (s2, e2):
                    first, second = sorted((idx1, idx2))
                    overlaps.append(
                        f"Chunks {first + 1} and {second + 1} overlap: "
                        f"lines [{s1}, {e1}) and [{s2}, {e2})"
                    )
        return overlaps
