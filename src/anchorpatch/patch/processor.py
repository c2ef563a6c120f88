from __future__ import annotations

from typing import Iterable, List, Optional

from anchorpatch.logger import logger
from anchorpatch.settings import ChangeChunkConfig
from .applier import ChunkApplier
from .matcher import ContextMatcher
from .models import ProcessResult
from .parser import ChunkParser, RawChunk, split_into_lines
from .request import FileApplyPatchRequest
from .validator import ChangeValidator


class ChangeChunkProcessor:
    """
    Runs Parse -> Validate -> Apply over one document and assembles the
    ProcessResult. Collaborators are plain values built per processor.
    """

    def __init__(
        self,
        parser: Optional[ChunkParser] = None,
        validator: Optional[ChangeValidator] = None,
        matcher: Optional[ContextMatcher] = None,
        applier: Optional[ChunkApplier] = None,
    ) -> None:
        self.parser = parser or ChunkParser()
        self.validator = validator or ChangeValidator()
        self.matcher = matcher or ContextMatcher()
        self.applier = applier or ChunkApplier(self.validator)

    def process_changes(
        self,
        request: FileApplyPatchRequest,
        config: ChangeChunkConfig,
        content: str,
    ) -> ProcessResult:
        logger.debug("Processing change chunks", path=request.path, chunks=len(request.chunks))
        return self.process(content, request.chunks, config)

    def process(
        self,
        content: str,
        chunks: Iterable[RawChunk],
        config: Optional[ChangeChunkConfig] = None,
    ) -> ProcessResult:
        cfg = config or ChangeChunkConfig()
        try:
            return self._process(content, list(chunks), cfg)
        except Exception as e:
            logger.exception("Unexpected error while applying change chunks", err=str(e))
            return ProcessResult(
                success=False,
                original_content=content,
                modified_content=content,
                errors=(f"Unexpected error: {type(e).__name__}: {e}",),
            )

    def _process(
        self, content: str, chunks: List[RawChunk], config: ChangeChunkConfig
    ) -> ProcessResult:
        if not chunks:
            return ProcessResult(
                success=True, original_content=content, modified_content=content
            )

        lines = split_into_lines(content)
        parsed = self.parser.parse_many(chunks)

        validation = self.validator.validate(parsed, lines)
        if not validation.is_valid:
            logger.warning("Change chunks failed validation", errors=len(validation.errors))
            return ProcessResult(
                success=False,
                original_content=content,
                modified_content=content,
                errors=validation.errors,
                warnings=validation.warnings,
            )

        result = self.applier.apply(parsed, lines, self.matcher, config)
        warnings = (*validation.warnings, *result.warnings)
        # Untouched or rolled back buffers keep the original bytes (line endings included)
        if tuple(lines) == result.modified_lines:
            modified = content
        else:
            modified = "\n".join(result.modified_lines)

        return ProcessResult(
            success=result.success,
            original_content=content,
            modified_content=modified,
            applied_changes=result.applied_changes,
            errors=result.errors,
            warnings=warnings,
        )
