"""Reconstruct markdown source from an event stream with mistune's MarkdownRenderer"""

from dataclasses import dataclass, field, replace
from textwrap import indent
from typing import Any, Iterable

from mistune.core import BlockState
from mistune.renderers.markdown import MarkdownRenderer

from mdbook_mermaid.core.dialect import DEFAULT_EXTENSIONS, Extension
from mdbook_mermaid.core.events import Event, EventKind, Tag
from mdbook_mermaid.errors import SerializationError


INLINE_TAGS = {Tag.emphasis, Tag.strong, Tag.strikethrough, Tag.link, Tag.image}
INLINE_KINDS = {
    EventKind.text, EventKind.code, EventKind.inline_html, EventKind.soft_break,
    EventKind.hard_break, EventKind.footnote_reference, EventKind.task_list_marker,
}


class EventMarkdownRenderer(MarkdownRenderer):
    """MarkdownRenderer for token dicts built from our events.

    Adds the dialect's strikethrough and footnotes, keeps escapes, entities
    and emphasis markers as they were written, and never turns a plain link
    into an autolink.
    """

    def text(self, token: dict[str, Any], state: BlockState) -> str:
        markup = token.get("markup")
        if markup:
            return markup
        return super().text(token, state)

    def emphasis(self, token: dict[str, Any], state: BlockState) -> str:
        marker = token.get("marker") or "*"
        return marker + self.render_children(token, state) + marker

    def strong(self, token: dict[str, Any], state: BlockState) -> str:
        marker = token.get("marker") or "**"
        return marker + self.render_children(token, state) + marker

    def strikethrough(self, token: dict[str, Any], state: BlockState) -> str:
        return "~~" + self.render_children(token, state) + "~~"

    def codespan(self, token: dict[str, Any], state: BlockState) -> str:
        code = token["raw"]
        # The parser strips one space from each side of a padded span
        if len(code) > 1 and code[0] == code[-1] == " " and code.strip():
            return super().codespan({**token, "raw": f" {code} "}, state)
        return super().codespan(token, state)

    def link(self, token: dict[str, Any], state: BlockState) -> str:
        if token.get("autolink"):
            return "<" + "".join(child["raw"] for child in token["children"]) + ">"
        return "[" + self.render_children(token, state) + "](" + _destination(token["attrs"]) + ")"

    def image(self, token: dict[str, Any], state: BlockState) -> str:
        return "![" + self.render_children(token, state) + "](" + _destination(token["attrs"]) + ")"

    def footnote_ref(self, token: dict[str, Any], state: BlockState) -> str:
        return "[^" + token["raw"] + "]"

    def footnote_item(self, token: dict[str, Any], state: BlockState) -> str:
        body = indent(self.render_children(token, state).rstrip("\n"), "    ")
        return "[^" + token["attrs"]["key"] + "]: " + body[4:] + "\n\n"

    def block_html(self, token: dict[str, Any], state: BlockState) -> str:
        return token["raw"].rstrip("\n") + "\n\n"

    def list(self, token: dict[str, Any], state: BlockState) -> str:
        text = super().list(token, state)
        # Nested lists are spaced by their item; any other list needs a blank
        # line, or a following paragraph becomes a lazy continuation
        return text if token.get("parent") else text + "\n"


def _destination(attrs: dict[str, Any]) -> str:
    url = attrs["url"]
    if not url or "(" in url or ")" in url:
        url = "<" + url + ">"
    title = attrs.get("title")
    if title:
        url += ' "' + title.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return url


@dataclass
class _Node:
    event: Event
    children: list["_Node"] = field(default_factory=list)


def _build_tree(events: Iterable[Event]) -> list[_Node]:
    """Nest events under their start events, checking every end matches."""
    root: list[_Node] = []
    stack: list[_Node] = []

    for event in events:
        siblings = stack[-1].children if stack else root
        if event.kind is EventKind.start:
            node = _Node(event)
            siblings.append(node)
            stack.append(node)
        elif event.kind is EventKind.end:
            if not stack:
                raise SerializationError(f"End of {event.tag.value} without a matching start")
            opened = stack.pop()
            if opened.event.tag is not event.tag:
                raise SerializationError(
                    f"End of {event.tag.value} does not match open {opened.event.tag.value}"
                )
        else:
            siblings.append(_Node(event))

    if stack:
        raise SerializationError(f"Unclosed {stack[-1].event.tag.value} at end of stream")
    return root


def _is_inline(node: _Node) -> bool:
    if node.event.kind is EventKind.start:
        return node.event.tag in INLINE_TAGS
    return node.event.kind in INLINE_KINDS


class _AstBuilder:
    """Turns a _Node tree into mistune's AST, refusing constructs the dialect does not enable."""

    def __init__(self, extensions: frozenset[Extension]):
        self.extensions = extensions

    def _require(self, extension: Extension, what: str) -> None:
        if extension not in self.extensions:
            raise SerializationError(f"Cannot write {what}: the '{extension.value}' extension is not enabled")

    def blocks(self, nodes: list[_Node], tight: bool = False) -> list[dict]:
        tokens = []
        run: list[_Node] = []
        for node in nodes:
            if _is_inline(node):
                run.append(node)
                continue
            if run:
                tokens.append(self.paragraph(run, tight))
                run = []
            tokens.append(self.block(node, tight))
        if run:
            tokens.append(self.paragraph(run, tight))
        return tokens

    def paragraph(self, nodes: list[_Node], tight: bool) -> dict:
        # mistune writes the paragraphs of tight list items as block_text
        return {"type": "block_text" if tight else "paragraph", "children": self.inline(nodes)}

    def block(self, node: _Node, tight: bool = False) -> dict:
        event = node.event
        if event.kind is EventKind.html:
            return {"type": "block_html", "raw": event.content}
        if event.kind is EventKind.rule:
            return {"type": "thematic_break"}
        if event.kind is not EventKind.start:
            raise SerializationError(f"Unexpected {event.kind.value} event at block level")

        tag = event.tag
        if tag is Tag.paragraph:
            return self.paragraph(node.children, tight)
        if tag is Tag.heading:
            return {"type": "heading", "attrs": {"level": event.attrs.get("level", 1)},
                    "children": self.inline(node.children)}
        if tag is Tag.blockquote:
            return {"type": "block_quote", "children": self.blocks(node.children)}
        if tag is Tag.code_block:
            content = "".join(c.event.content for c in node.children if c.event.kind is EventKind.text)
            return {"type": "block_code", "raw": content, "marker": event.attrs.get("fence", ""),
                    "attrs": {"info": event.attrs.get("info", "")}}
        if tag is Tag.list:
            return self.list_block(node)
        if tag is Tag.table:
            self._require(Extension.tables, "a table")
            return self.table(node)
        if tag is Tag.footnote_definition:
            self._require(Extension.footnotes, "a footnote definition")
            return {"type": "footnote_item", "attrs": {"key": event.attrs.get("label", "")},
                    "children": self.blocks(node.children)}
        raise SerializationError(f"Unexpected {tag.value} at block level")

    def list_block(self, node: _Node) -> dict:
        attrs = node.event.attrs
        ordered = attrs.get("ordered", False)
        tight = attrs.get("tight", False)
        items = []
        for child in node.children:
            if child.event.tag is not Tag.item:
                raise SerializationError("A list may only contain items")
            checked, children = self._split_task_marker(child)
            item = {"type": "list_item", "children": self.blocks(children, tight=tight)}
            if checked is not None:
                item = {**item, "type": "task_list_item", "attrs": {"checked": checked}}
            items.append(item)
        return {
            "type": "list",
            "tight": tight,
            "bullet": attrs.get("marker") or ("." if ordered else "-"),
            "attrs": {"ordered": ordered, "start": attrs.get("start", 1)},
            "children": items,
        }

    def _split_task_marker(self, item: _Node) -> tuple[bool | None, list[_Node]]:
        """Pull a leading checkbox out of a list item; checked is None for a plain item."""
        first = item.children[0] if item.children else None
        if first is None or first.event.tag is not Tag.paragraph or not first.children:
            return None, item.children
        marker, *rest = first.children
        if marker.event.kind is not EventKind.task_list_marker:
            return None, item.children

        self._require(Extension.tasklists, "a task list marker")
        if rest and rest[0].event.kind is EventKind.text and rest[0].event.content.startswith(" "):
            rest[0] = _Node(replace(rest[0].event, content=rest[0].event.content[1:]))
        return bool(marker.event.attrs.get("checked")), [_Node(first.event, rest), *item.children[1:]]

    def table(self, node: _Node) -> dict:
        head: list[dict] = []
        rows: list[dict] = []
        for section in node.children:
            is_head = section.event.tag is Tag.table_head
            for row in section.children:
                cells = [{"type": "table_cell",
                          "attrs": {"align": cell.event.attrs.get("align"), "head": is_head},
                          "children": self.inline(cell.children)} for cell in row.children]
                if is_head:
                    head = cells
                else:
                    rows.append({"type": "table_row", "children": cells})

        children = [{"type": "table_head", "children": head}]
        if rows:
            children.append({"type": "table_body", "children": rows})
        return {"type": "table", "children": children}

    def inline(self, nodes: list[_Node]) -> list[dict]:
        tokens = []
        for node in nodes:
            event = node.event
            kind = event.kind
            if kind is EventKind.text:
                token = {"type": "text", "raw": event.content}
                if event.attrs.get("markup"):
                    token["markup"] = event.attrs["markup"]
                tokens.append(token)
            elif kind is EventKind.soft_break:
                tokens.append({"type": "softbreak"})
            elif kind is EventKind.hard_break:
                tokens.append({"type": "linebreak"})
            elif kind is EventKind.code:
                tokens.append({"type": "codespan", "raw": event.content})
            elif kind in (EventKind.inline_html, EventKind.html):
                tokens.append({"type": "inline_html", "raw": event.content})
            elif kind is EventKind.footnote_reference:
                self._require(Extension.footnotes, "a footnote reference")
                tokens.append({"type": "footnote_ref", "raw": event.attrs.get("label", "")})
            elif kind is EventKind.task_list_marker:
                self._require(Extension.tasklists, "a task list marker")
                raise SerializationError("A task list marker may only start a list item")
            elif kind is EventKind.start and event.tag in INLINE_TAGS:
                tokens.append(self.span(node))
            else:
                raise SerializationError(f"Unexpected {kind.value} event inside inline content")
        return tokens

    def span(self, node: _Node) -> dict:
        attrs = node.event.attrs
        tag = node.event.tag
        children = self.inline(node.children)
        if tag in (Tag.emphasis, Tag.strong):
            return {"type": tag.value, "marker": attrs.get("marker"), "children": children}
        if tag is Tag.strikethrough:
            self._require(Extension.strikethrough, "strikethrough")
            return {"type": "strikethrough", "children": children}
        if tag is Tag.link:
            return {"type": "link", "autolink": attrs.get("autolink", False), "children": children,
                    "attrs": {"url": attrs.get("href", ""), "title": attrs.get("title", "")}}
        return {"type": "image", "children": children,
                "attrs": {"url": attrs.get("src", ""), "title": attrs.get("title", "")}}


def serialize(events: Iterable[Event], extensions: frozenset[Extension] = DEFAULT_EXTENSIONS) -> str:
    """Turn an event stream back into markdown using the same extensions it was parsed with.

    Raw html events are written verbatim and the output has no trailing
    newline. Raises SerializationError when the stream is unbalanced, needs an
    extension that is not enabled, or the renderer fails.
    """
    tree = _build_tree(events)
    try:
        tokens = _AstBuilder(extensions).blocks(tree)
        return EventMarkdownRenderer()(tokens, BlockState()).rstrip("\n")
    except SerializationError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SerializationError(f"Markdown serialization failed: {e}") from e
