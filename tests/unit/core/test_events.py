"""Unit tests for core/events.py"""

import pytest

from mdbook_mermaid.core.dialect import make_parser
from mdbook_mermaid.core.events import Event, EventKind, Tag, fence_label, iter_events


def _events(md: str) -> list[Event]:
    return list(iter_events(make_parser().parse(md), md))


def test_fence_becomes_start_text_end():
    """A fenced block flattens to start(code_block), text(content), end(code_block)."""
    events = _events("```mermaid\ngraph TD\n```\n")
    attrs = {"info": "mermaid", "fence": "```"}
    assert events == [
        Event.start(Tag.code_block, **attrs),
        Event.text("graph TD\n"),
        Event.end(Tag.code_block, **attrs),
    ]


def test_empty_fence_has_no_text():
    """An empty fenced block yields no text event."""
    events = _events("```mermaid\n```\n")
    assert [e.kind for e in events] == [EventKind.start, EventKind.end]


def test_indented_code_block_has_empty_info():
    """Indented code maps to a code_block with no info and no fence."""
    events = _events("    indented\n")
    assert events[0] == Event.start(Tag.code_block, info="", fence="")
    assert events[1] == Event.text("indented\n")


def test_end_events_repeat_start_attrs():
    """Every end event carries the same tag and attrs as its start."""
    events = _events("# Hi\n\n[link](https://example.com)\n")
    starts = [e for e in events if e.kind is EventKind.start]
    ends = [e for e in events if e.kind is EventKind.end]
    assert sorted((e.tag.value, repr(e.attrs)) for e in starts) == sorted((e.tag.value, repr(e.attrs)) for e in ends)


def test_heading_level():
    """heading_open tag h2 becomes level=2."""
    events = _events("## Sub\n")
    assert events[0] == Event.start(Tag.heading, level=2)


@pytest.mark.parametrize("md,tight", [
    ("- a\n- b\n", True),
    ("- a\n\n- b\n", False),
])
def test_list_tightness(md, tight):
    """Lists record whether their items are separated by blank lines."""
    events = _events(md)
    assert events[0].tag is Tag.list
    assert events[0].attrs["tight"] is tight


def test_ordered_list_start():
    """Ordered lists keep their start number and delimiter."""
    events = _events("3) three\n4) four\n")
    assert events[0].attrs == {"ordered": True, "start": 3, "marker": ")", "tight": True}


def test_table_cells_carry_alignment():
    """Table cells carry the column alignment from the delimiter row."""
    events = _events("|a|b|\n|:-|-:|\n|1|2|\n")
    cells = [e for e in events if e.kind is EventKind.start and e.tag is Tag.table_cell]
    assert [c.attrs["align"] for c in cells] == ["left", "right", "left", "right"]
    assert [c.attrs["header"] for c in cells] == [True, True, False, False]


def test_task_list_marker():
    """Task list checkboxes become task_list_marker events."""
    events = _events("- [x] done\n- [ ] todo\n")
    markers = [e for e in events if e.kind is EventKind.task_list_marker]
    assert [m.attrs["checked"] for m in markers] == [True, False]


def test_footnote_reference_and_definition():
    """Footnote references and definitions carry their label."""
    events = _events("Note[^n].\n\n[^n]: Body.\n")
    refs = [e for e in events if e.kind is EventKind.footnote_reference]
    defs = [e for e in events if e.kind is EventKind.start and e.tag is Tag.footnote_definition]
    assert refs[0].attrs == {"label": "n"}
    assert defs[0].attrs == {"label": "n"}


def test_html_block_passthrough():
    """Raw HTML blocks become html events with their source text."""
    events = _events("<div>raw</div>\n")
    assert events == [Event.html("<div>raw</div>\n")]


@pytest.mark.parametrize("info,label", [
    ("mermaid", "mermaid"),
    ('mermaid title="x"', 'mermaid title="x"'),
    ("", ""),
])
def test_fence_label(info, label):
    """fence_label is the whole info string, not its first word."""
    assert fence_label(Event.start(Tag.code_block, info=info)) == label


def test_iter_events_is_lazy():
    """iter_events returns a generator, not a list."""
    tokens = make_parser().parse("text\n")
    assert not isinstance(iter_events(tokens), list)
    assert next(iter_events(tokens)) == Event.start(Tag.paragraph)
