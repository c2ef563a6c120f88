from __future__ import annotations

from typing import List, Optional, Sequence

from anchorpatch.logger import logger
from anchorpatch.settings import ChangeChunkConfig
from .models import MatchResult
from .strategies import MatchStrategy, default_strategies


class ContextMatcher:
    """
    Locates a context marker inside the document by walking an ordered chain
    of strategies and accepting the first result that clears min_confidence.
    """

    def __init__(self, strategies: Optional[Sequence[MatchStrategy]] = None) -> None:
        self._strategies: List[MatchStrategy] = list(
            strategies if strategies is not None else default_strategies()
        )

    @property
    def strategies(self) -> List[MatchStrategy]:
        return list(self._strategies)

    def find_best_match(
        self, lines: Sequence[str], marker: str, config: ChangeChunkConfig
    ) -> MatchResult:
        reasons: List[str] = []
        for strategy in self._strategies:
            result = strategy.try_match(lines, marker, config)
            if result.found and result.confidence >= config.min_confidence:
                logger.debug(
                    "Context marker resolved",
                    marker=marker,
                    line=result.line_number,
                    strategy=result.strategy,
                    confidence=result.confidence,
                )
                return result
            if result.found:
                reasons.append(
                    f"{strategy.name}: line {result.line_number} below threshold "
                    f"({result.confidence:.2f} < {config.min_confidence:.2f})"
                )
            else:
                reasons.append(result.reason)

        logger.debug("Context marker unresolved", marker=marker, reasons=reasons)
        return MatchResult.not_found("; ".join(reasons))

    def find_all_matches(
        self, lines: Sequence[str], marker: str, config: ChangeChunkConfig
    ) -> List[MatchResult]:
        # Diagnostic only; apply never consults this
        return [s.try_match(lines, marker, config) for s in self._strategies]
