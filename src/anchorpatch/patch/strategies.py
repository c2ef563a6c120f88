from __future__ import annotations

import re
import unicodedata
from abc import ABC, abstractmethod
from typing import Final, List, Sequence

from anchorpatch.settings import ChangeChunkConfig
from .models import MatchResult

WHITESPACE_RE = re.compile(r"\s+")

# Zero-width characters, BOM, soft hyphen and variation selectors.
INVISIBLE_RE = re.compile("[\u00ad\u200b-\u200d\u2060\ufeff\ufe00-\ufe0f]")

TYPOGRAPHIC_MAP: Final = str.maketrans(
    {
        "\u2018": "'",
        "\u2019": "'",
        "\u201a": "'",
        "\u201b": "'",
        "\u201c": '"',
        "\u201d": '"',
        "\u201e": '"',
        "\u201f": '"',
        "\u2010": "-",
        "\u2011": "-",
        "\u2012": "-",
        "\u2013": "-",
        "\u2014": "-",
        "\u2212": "-",
    }
)


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


class MatchStrategy(ABC):
    """
    One step of the anchor matching chain.
    Scans at most config.max_search_lines lines from the top and reports the
    first line whose normalized text equals or contains the normalized marker.
    """

    name: str
    confidence: float

    @abstractmethod
    def normalize(self, text: str, config: ChangeChunkConfig) -> str: ...

    def _prepare(self, text: str, config: ChangeChunkConfig) -> str:
        out = self.normalize(text, config)
        return out if config.case_sensitive else out.casefold()

    def try_match(
        self, lines: Sequence[str], marker: str, config: ChangeChunkConfig
    ) -> MatchResult:
        needle = self._prepare(marker, config)
        if not needle.strip():
            return MatchResult.not_found("Empty context marker", strategy=self.name)

        limit = min(len(lines), config.max_search_lines)
        for idx in range(limit):
            candidate = self._prepare(lines[idx], config)
            if candidate == needle or needle in candidate:
                return MatchResult(
                    found=True,
                    line_number=idx,
                    confidence=self.confidence,
                    reason=f"{self.name} match at line {idx}",
                    strategy=self.name,
                )

        return MatchResult.not_found(
            f"{self.name}: no match for {marker!r} in first {limit} line(s)",
            strategy=self.name,
        )


class ExactMatcher(MatchStrategy):
    name = "exact"
    confidence = 1.0

    def normalize(self, text: str, config: ChangeChunkConfig) -> str:
        return text if config.preserve_whitespace else text.strip()


class WhitespaceTolerantMatcher(MatchStrategy):
    name = "whitespace"
    confidence = 0.9

    def normalize(self, text: str, config: ChangeChunkConfig) -> str:
        return collapse_whitespace(text)

    def try_match(
        self, lines: Sequence[str], marker: str, config: ChangeChunkConfig
    ) -> MatchResult:
        if config.preserve_whitespace:
            return MatchResult.not_found(
                f"{self.name}: disabled by preserve_whitespace", strategy=self.name
            )
        return super().try_match(lines, marker, config)


class UnicodeNormalizingMatcher(MatchStrategy):
    name = "unicode"
    confidence = 0.8

    def normalize(self, text: str, config: ChangeChunkConfig) -> str:
        out = unicodedata.normalize("NFKC", text)
        out = INVISIBLE_RE.sub("", out).translate(TYPOGRAPHIC_MAP)
        if config.preserve_whitespace:
            return out
        return collapse_whitespace(out)


def default_strategies() -> List[MatchStrategy]:
    """Strategies ordered from most to least specific."""
    return [ExactMatcher(), WhitespaceTolerantMatcher(), UnicodeNormalizingMatcher()]
