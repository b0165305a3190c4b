"""Tests for the line-level section helpers."""

from docwf.domain.parsing.markdown import (
    append_section,
    append_to_named_section,
    collect_sub_items,
    find_section,
    frontmatter_end,
    join_lines,
    remove_lines,
    split_lines,
)


def test_split_and_join_preserve_trailing_newline():
    content = "# Title\n\nBody\n"
    assert join_lines(split_lines(content)) == content


def test_frontmatter_end():
    lines = ["---", "title: Log", "---", "", "## 2024-01-01"]
    assert frontmatter_end(lines) == 3
    assert frontmatter_end(["# No frontmatter"]) == 0
    assert frontmatter_end(["---", "unterminated"]) == 0


def test_find_section_stops_at_same_level_heading():
    lines = ["# Tasks", "## Now", "- [ ] a", "### Detail", "text", "## Next", "- [ ] b"]
    span = find_section(lines, "## Now")
    assert span.start == 1
    assert span.end == 5
    assert span.body_start == 2


def test_find_section_missing():
    assert find_section(["# Tasks"], "## Now") is None


def test_find_section_stop_at_rule():
    lines = ["## Vertical Slices", "#### VS1 — A", "---", "## Notes"]
    assert find_section(lines, "## Vertical Slices", stop_at_rule=True).end == 2


def test_append_to_named_section_inserts_before_next_heading():
    lines = ["## Now", "- [ ] a", "", "## Next", "- [ ] b"]
    result = append_to_named_section(lines, "## Now", ["- [ ] new"])
    assert result == ["## Now", "- [ ] a", "- [ ] new", "", "## Next", "- [ ] b"]


def test_append_to_named_section_creates_missing_section():
    lines = ["# Tasks", "", "## Now", "- [ ] a", ""]
    result = append_to_named_section(lines, "## Later", ["- [ ] c"])
    assert result == ["# Tasks", "", "## Now", "- [ ] a", "", "## Later", "- [ ] c", ""]


def test_append_section_to_empty_document():
    assert append_section([""], "## Now", ["- [ ] a"]) == ["## Now", "- [ ] a"]


def test_remove_lines():
    assert remove_lines(["a", "b", "c"], {1}) == ["a", "c"]


def test_collect_sub_items_stops_at_checkbox():
    lines = ["- [x] Task", "  - note one", "  - note two", "  - [ ] nested", "- [ ] next"]
    assert collect_sub_items(lines, 0) == ["  - note one", "  - note two"]
