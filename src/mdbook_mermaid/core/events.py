"""Flat event stream over markdown-it tokens (block and inline)"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """Kinds of events in the stream"""
    start = "start"
    end = "end"
    text = "text"
    code = "code"                               # inline code span
    html = "html"                               # raw HTML block, emitted verbatim
    inline_html = "inline_html"
    soft_break = "soft_break"
    hard_break = "hard_break"
    rule = "rule"
    footnote_reference = "footnote_reference"
    task_list_marker = "task_list_marker"


class Tag(str, Enum):
    """Containers opened by a start event and closed by an end event"""
    paragraph = "paragraph"
    heading = "heading"
    blockquote = "blockquote"
    code_block = "code_block"
    list = "list"
    item = "item"
    table = "table"
    table_head = "table_head"
    table_body = "table_body"
    table_row = "table_row"
    table_cell = "table_cell"
    footnote_definition = "footnote_definition"
    emphasis = "emphasis"
    strong = "strong"
    strikethrough = "strikethrough"
    link = "link"
    image = "image"


@dataclass(frozen=True)
class Event:
    """One element of the stream; end events repeat the attrs of their start."""
    kind:    EventKind
    tag:     Tag | None = None
    content: str = ""
    attrs:   dict[str, Any] = field(default_factory=dict)

    @classmethod
    def start(cls, tag: Tag, **attrs) -> "Event":
        return cls(EventKind.start, tag, attrs=attrs)

    @classmethod
    def end(cls, tag: Tag, **attrs) -> "Event":
        return cls(EventKind.end, tag, attrs=attrs)

    @classmethod
    def text(cls, content: str) -> "Event":
        return cls(EventKind.text, content=content)

    @classmethod
    def html(cls, content: str) -> "Event":
        return cls(EventKind.html, content=content)


# markdown-it token type prefixes (without _open/_close) that map onto a Tag
CONTAINER_TAGS: dict[str, Tag] = {
    'paragraph':    Tag.paragraph,
    'heading':      Tag.heading,
    'blockquote':   Tag.blockquote,
    'bullet_list':  Tag.list,
    'ordered_list': Tag.list,
    'list_item':    Tag.item,
    'table':        Tag.table,
    'thead':        Tag.table_head,
    'tbody':        Tag.table_body,
    'tr':           Tag.table_row,
    'th':           Tag.table_cell,
    'td':           Tag.table_cell,
    'footnote':     Tag.footnote_definition,
    'em':           Tag.emphasis,
    'strong':       Tag.strong,
    's':            Tag.strikethrough,
    'link':         Tag.link,
}

# Footnote bookkeeping tokens with no markdown source of their own
SKIPPED_TOKENS = {'footnote_block_open', 'footnote_block_close', 'footnote_anchor'}

TASK_CHECKBOX_CLASS = 'task-list-item-checkbox'


def fence_label(event: Event) -> str:
    """Return the language label of a code_block event: its whole info string."""
    return event.attrs.get('info', '')


def _container_name(token) -> str:
    return token.type.rsplit('_', 1)[0]


def _source_slice(token, source_lines: list[str]) -> str:
    """Raw source for a block via token.map; fallback to token.content."""
    if token.map:
        start, end = token.map
        return ''.join(source_lines[start:end]).rstrip('\n')
    return token.content.rstrip('\n')


def _matching_close(tokens: list, i: int) -> int:
    """Index of the token closing the container opened at tokens[i]."""
    depth = 0
    for j in range(i, len(tokens)):
        depth += tokens[j].nesting
        if depth == 0:
            return j
    return len(tokens) - 1


def _is_tight(tokens: list, i: int) -> bool:
    """True when the list opened at tokens[i] hides its paragraphs (no blank lines between items)."""
    level = tokens[i].level
    for tok in tokens[i + 1:]:
        if tok.nesting == -1 and tok.level == level:
            break
        if tok.type == 'paragraph_open' and tok.level == level + 2:
            return tok.hidden
    return True


def _cell_align(token) -> str | None:
    style = token.attrGet('style') or ''
    if style.startswith('text-align:'):
        return style[len('text-align:'):]
    return None


def _footnote_label(meta: dict | None) -> str:
    return (meta or {}).get('label', '')


def _start_attrs(tokens: list, i: int, tag: Tag) -> dict[str, Any]:
    tok = tokens[i]
    if tag is Tag.heading:
        return {'level': int(tok.tag[1:])}
    if tag is Tag.list:
        if tok.type == 'ordered_list_open':
            start = tok.attrGet('start')
            return {'ordered': True, 'start': 1 if start is None else int(start),
                    'marker': tok.markup, 'tight': _is_tight(tokens, i)}
        return {'ordered': False, 'marker': tok.markup, 'tight': _is_tight(tokens, i)}
    if tag is Tag.table_cell:
        return {'align': _cell_align(tok), 'header': tok.type == 'th_open'}
    if tag in (Tag.emphasis, Tag.strong):
        return {'marker': tok.markup}
    if tag is Tag.link:
        return {'href': tok.attrGet('href') or '', 'title': tok.attrGet('title') or '',
                'autolink': tok.markup == 'autolink'}
    if tag is Tag.footnote_definition:
        return {'label': _footnote_label(tok.meta)}
    return {}


def _leaf_events(tok, source_lines: list[str]) -> Iterator[Event]:
    if tok.type == 'inline':
        yield from _walk(tok.children or [], source_lines)
    elif tok.type == 'text':
        if tok.content:
            yield Event.text(tok.content)
    elif tok.type == 'text_special':
        # backslash escape or entity: content is the literal, markup the source spelling
        yield Event(EventKind.text, content=tok.content, attrs={'markup': tok.markup})
    elif tok.type == 'softbreak':
        yield Event(EventKind.soft_break)
    elif tok.type == 'hardbreak':
        yield Event(EventKind.hard_break)
    elif tok.type == 'code_inline':
        yield Event(EventKind.code, content=tok.content)
    elif tok.type in ('fence', 'code_block'):
        attrs = {'info': tok.info.strip(), 'fence': tok.markup} if tok.type == 'fence' else {'info': '', 'fence': ''}
        yield Event.start(Tag.code_block, **attrs)
        if tok.content:
            yield Event.text(tok.content)
        yield Event.end(Tag.code_block, **attrs)
    elif tok.type == 'html_block':
        yield Event.html(tok.content)
    elif tok.type == 'html_inline':
        if TASK_CHECKBOX_CLASS in tok.content:
            yield Event(EventKind.task_list_marker, attrs={'checked': 'checked=' in tok.content})
        else:
            yield Event(EventKind.inline_html, content=tok.content)
    elif tok.type == 'hr':
        yield Event(EventKind.rule, content=tok.markup)
    elif tok.type == 'image':
        attrs = {'src': tok.attrGet('src') or '', 'title': tok.attrGet('title') or ''}
        yield Event.start(Tag.image, **attrs)
        yield from _walk(tok.children or [], source_lines)
        yield Event.end(Tag.image, **attrs)
    elif tok.type == 'footnote_ref':
        yield Event(EventKind.footnote_reference, attrs={'label': _footnote_label(tok.meta)})
    elif tok.map:
        logger.debug("Passing through unknown block token %r as raw source", tok.type)
        yield Event.html(_source_slice(tok, source_lines))
    else:
        logger.debug("Passing through unknown inline token %r as raw markup", tok.type)
        yield Event(EventKind.inline_html, content=f"{tok.markup}{tok.content}{tok.markup}")


def _walk(tokens: list, source_lines: list[str]) -> Iterator[Event]:
    open_events: list[Event] = []
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.type in SKIPPED_TOKENS:
            i += 1
            continue

        tag = CONTAINER_TAGS.get(_container_name(tok)) if tok.nesting else None
        if tok.nesting == 1 and tag is not None:
            event = Event.start(tag, **_start_attrs(tokens, i, tag))
            open_events.append(event)
            yield event
        elif tok.nesting == -1 and tag is not None:
            opened = open_events.pop()
            yield Event.end(opened.tag, **opened.attrs)
        elif tok.nesting == 1 and tok.map:
            # Unknown block container: keep its whole source span as-is
            logger.debug("Passing through unknown container %r as raw source", tok.type)
            close = _matching_close(tokens, i)
            yield Event.html(_source_slice(tok, source_lines))
            i = close
        elif tok.nesting:
            yield Event(EventKind.inline_html, content=tok.markup)
        else:
            yield from _leaf_events(tok, source_lines)
        i += 1


def iter_events(tokens: list, source: str = "") -> Iterator[Event]:
    """Lazily flatten markdown-it tokens into Events.

    A fenced code block becomes start(code_block), text(content), end(code_block),
    with ``info`` holding its info string. ``source`` is only needed to pass
    tokens of unknown plugins through as raw markdown.
    """
    yield from _walk(tokens, source.splitlines(keepends=True))
