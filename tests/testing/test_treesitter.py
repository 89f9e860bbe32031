"""Tests for the tree-sitter block parser."""

from __future__ import annotations

from pathlib import Path

import pytest

from jestexplorer.testing.models import Location
from jestexplorer.testing.treesitter import TreeSitterBlockParser

JS_SOURCE = b"""describe("math", () => {
  it("adds", () => {
    expect(1 + 1).toBe(2);
  });
  describe.each([[1], [2]])("row %i", (n) => {
    test("works", () => {});
  });
});
test.skip('top level', () => {});
"""

TS_SOURCE = b"""import { sum } from "./sum";

describe("typed", () => {
  it.only(`template name`, (): void => {
    const x: number = sum(1, 2);
    expect(x).toBe(3);
  });
  xit("skipped", () => {});
});
"""

TSX_SOURCE = b"""const render = (el: JSX.Element) => el;

test("renders", () => {
  render(<div className="x">hi</div>);
});
"""


@pytest.fixture
def parser() -> TreeSitterBlockParser:
    return TreeSitterBlockParser()


class TestParseSource:
    """Block extraction from source text."""

    def test_javascript_blocks(self, parser: TreeSitterBlockParser) -> None:
        parsed = parser.parse_source(JS_SOURCE, "javascript")

        assert [b.name for b in parsed.describe_blocks] == ["math", "row %i"]
        assert [b.name for b in parsed.it_blocks] == ["adds", "works", "top level"]

    def test_block_positions_are_one_based_lines(self, parser: TreeSitterBlockParser) -> None:
        parsed = parser.parse_source(JS_SOURCE, "javascript")

        math = parsed.describe_blocks[0]
        assert math.start == Location(line=1, column=0)
        assert math.end.line == 8
        assert parsed.it_blocks[0].start == Location(line=2, column=2)
        assert parsed.it_blocks[2].start.line == 9

    def test_each_block_spans_whole_call(self, parser: TreeSitterBlockParser) -> None:
        parsed = parser.parse_source(JS_SOURCE, "javascript")

        row = parsed.describe_blocks[1]
        assert row.start.line == 5
        assert row.end.line == 7

    def test_typescript_blocks(self, parser: TreeSitterBlockParser) -> None:
        parsed = parser.parse_source(TS_SOURCE, "typescript")

        assert [b.name for b in parsed.describe_blocks] == ["typed"]
        assert [b.name for b in parsed.it_blocks] == ["template name", "skipped"]

    def test_tsx_blocks(self, parser: TreeSitterBlockParser) -> None:
        parsed = parser.parse_source(TSX_SOURCE, "tsx")

        assert [b.name for b in parsed.it_blocks] == ["renders"]

    def test_non_test_calls_ignored(self, parser: TreeSitterBlockParser) -> None:
        parsed = parser.parse_source(b"foo('a', () => {});\nexpect(1).toBe(1);\n", "javascript")

        assert parsed.describe_blocks == ()
        assert parsed.it_blocks == ()

    def test_syntax_error_raises(self, parser: TreeSitterBlockParser) -> None:
        with pytest.raises(SyntaxError, match="Unexpected token"):
            parser.parse_source(b"describe('x', () => {\n  it('y', () => {\n", "javascript")

    def test_unknown_language_raises(self, parser: TreeSitterBlockParser) -> None:
        with pytest.raises(ValueError):
            parser.parse_source(b"", "coffeescript")


class TestParseFile:
    """Language selection from file extension."""

    def test_parses_by_extension(self, parser: TreeSitterBlockParser, tmp_path: Path) -> None:
        path = tmp_path / "sum.test.ts"
        path.write_bytes(TS_SOURCE)

        parsed = parser.parse(str(path))

        assert len(parsed.it_blocks) == 2

    def test_unsupported_extension_raises(self, parser: TreeSitterBlockParser, tmp_path: Path) -> None:
        path = tmp_path / "notes.test.md"
        path.write_text("# notes", encoding="utf-8")

        with pytest.raises(ValueError, match="Unsupported"):
            parser.parse(str(path))

    def test_missing_file_raises(self, parser: TreeSitterBlockParser, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            parser.parse(str(tmp_path / "gone.test.js"))
