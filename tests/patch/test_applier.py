from typing import Dict, Sequence

import pytest

from anchorpatch.patch.applier import ChunkApplier
from anchorpatch.patch.matcher import ContextMatcher
from anchorpatch.patch.models import ChangeOperation, ChangeType, MatchResult, ParsedChunk
from anchorpatch.settings import ChangeChunkConfig


def chunk(marker: str, *changes: str) -> ParsedChunk:
    kinds = {"+": ChangeType.ADD, "-": ChangeType.REMOVE, " ": ChangeType.CONTEXT}
    return ParsedChunk(
        context_marker=marker,
        changes=tuple(ChangeOperation(kinds[c[0]], c[1:]) for c in changes),
    )


class FixedPositionMatcher:
    """Resolves markers to preset line numbers."""

    def __init__(self, positions: Dict[str, int]) -> None:
        self.positions = positions

    def find_best_match(
        self, lines: Sequence[str], marker: str, config: ChangeChunkConfig
    ) -> MatchResult:
        return MatchResult(
            found=True,
            line_number=self.positions[marker],
            confidence=1.0,
            reason="preset",
            strategy="preset",
        )


@pytest.fixture
def config() -> ChangeChunkConfig:
    return ChangeChunkConfig()


def apply(chunks, lines, config):
    return ChunkApplier().apply(chunks, lines, ContextMatcher(), config)


def test_context_remove_add_scenario(config):
    result = apply([chunk("b", " b", "-c", "+d")], ["a", "b", "c"], config)

    assert result.success is True
    assert result.modified_lines == ("a", "b", "d")
    assert result.applied_changes == ("Applied chunk at position 1: +1 -1 lines",)
    assert result.errors == ()


def test_unresolved_marker_leaves_document_untouched(config):
    lines = ["a", "b", "c"]
    result = apply([chunk("b", " b", "+x"), chunk("x", "+y")], lines, config)

    assert result.success is False
    assert result.modified_lines == tuple(lines)
    assert result.applied_changes == ()
    assert result.errors[0] == "Some context markers could not be located"
    assert "'x'" in result.errors[1]


def test_bottom_up_application_keeps_later_anchor(config):
    lines = [f"row {i:02d}" for i in range(30)]
    chunks = [
        chunk("row 10", " row 10", "+new 1", "+new 2", "+new 3"),
        chunk("row 20", " row 20", "-row 21", "+changed 21"),
    ]
    result = apply(chunks, lines, config)

    out = list(result.modified_lines)
    assert result.success
    assert out[11:14] == ["new 1", "new 2", "new 3"]
    assert out[out.index("row 20") + 1] == "changed 21"
    assert "row 21" not in out
    assert len(out) == 33
    # Applied bottom-up
    assert result.applied_changes[0].startswith("Applied chunk at position 20")
    assert result.applied_changes[1].startswith("Applied chunk at position 10")


def test_context_line_self_heals_within_window(config):
    lines = ["def f():", "    x = 1", "    y = 2", "    return x"]
    result = apply([chunk("def f", " def f():", " y = 2", "+    z = 3")], lines, config)

    assert result.modified_lines == ("def f():", "    x = 1", "    y = 2", "    z = 3", "    return x")


def test_empty_context_line_matches_anything(config):
    lines = ["a", "anything", "c"]
    result = apply([chunk("a", " a", " ", "+b")], lines, config)
    assert result.modified_lines == ("a", "anything", "b", "c")


def test_removal_searches_backward_from_cursor(config):
    result = apply([chunk("b", " b", " c", "-b")], ["a", "b", "c"], config)
    assert result.modified_lines == ("a", "c")


def test_removal_target_out_of_reach_is_a_warning(config):
    lines = ["target"] + [f"filler {i}" for i in range(1, 21)]
    result = apply([chunk("filler 15", " filler 15", "-target")], lines, config)

    assert result.success is True
    assert result.modified_lines == tuple(lines)
    assert result.applied_changes == ("Applied chunk at position 15: +0 -0 lines",)
    assert any("'target'" in w for w in result.warnings)


def test_fuzzy_anchor_produces_warning(config):
    result = apply([chunk("foo bar", " foo  bar", "+qux")], ["foo  bar", "baz"], config)

    assert result.success
    assert result.modified_lines == ("foo  bar", "qux", "baz")
    assert any("whitespace" in w and "0.90" in w for w in result.warnings)


def test_overlapping_chunks_are_rejected(config):
    lines = ["a", "b", "c", "d"]
    chunks = [chunk("b", " b", " c", "+x"), chunk("c", " c", "+y")]
    result = apply(chunks, lines, config)

    assert result.success is False
    assert result.modified_lines == tuple(lines)
    assert "overlap" in result.errors[0]


def test_apply_failure_rolls_back_by_default(config):
    lines = ["a", "b", "c"]
    matcher = FixedPositionMatcher({"a": 0, "zzz": 99})
    chunks = [chunk("a", " a", "+a2"), chunk("zzz", "+never")]

    result = ChunkApplier().apply(chunks, lines, matcher, config)

    assert result.success is False
    assert result.modified_lines == tuple(lines)
    assert result.applied_changes == ()
    assert result.errors[0].startswith("Failed to apply chunk at position 99")
    assert any("Rolled back 1 applied chunk(s)" in w for w in result.warnings)


def test_apply_failure_keeps_partial_result_without_rollback():
    config = ChangeChunkConfig(rollback_on_error=False)
    lines = ["a", "b", "c"]
    matcher = FixedPositionMatcher({"a": 0, "zzz": 99})
    chunks = [chunk("a", " a", "+a2"), chunk("zzz", "+never")]

    result = ChunkApplier().apply(chunks, lines, matcher, config)

    assert result.success is False
    assert result.modified_lines == ("a", "a2", "b", "c")
    assert result.applied_changes == ("Applied chunk at position 0: +1 -0 lines",)
    assert len(result.errors) == 1


def test_input_lines_are_not_mutated(config):
    lines = ["a", "b", "c"]
    apply([chunk("b", " b", "-c", "+d")], lines, config)
    assert lines == ["a", "b", "c"]


def test_footprint_follows_context_walk_above_anchor():
    lines = ["class A", "{", "    foo();", "    bar();", "}"]

    first = ChunkApplier.footprint(chunk("foo()", " {", "-    foo();", "+    baz();"), lines, 2)
    second = ChunkApplier.footprint(chunk("bar()", "-    bar();", "+    qux();"), lines, 3)

    assert first == (1, 3)
    assert second == (3, 4)


def test_footprint_of_pure_insertion_is_empty():
    assert ChunkApplier.footprint(chunk("b", "+x"), ["a", "b", "c"], 1) == (1, 1)
    assert ChunkApplier.footprint(chunk("zzz", "+x"), ["a", "b", "c"], 10) == (10, 10)
