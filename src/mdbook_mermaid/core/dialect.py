"""Markdown dialect: the extension set shared by the parser and the serializer"""

from enum import Enum

from markdown_it import MarkdownIt
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin


class Extension(str, Enum):
    """Markdown extensions on top of CommonMark, matching what mdBook enables"""
    tables = "tables"
    footnotes = "footnotes"
    strikethrough = "strikethrough"
    tasklists = "tasklists"


# Parse and serialize must see the same set, otherwise unrelated constructs
# (tables in particular) come back mangled.
DEFAULT_EXTENSIONS: frozenset[Extension] = frozenset(Extension)


def make_parser(extensions: frozenset[Extension] = DEFAULT_EXTENSIONS) -> MarkdownIt:
    """Build a MarkdownIt instance with exactly the given extensions enabled."""
    md = MarkdownIt("commonmark")
    # Escapes and entities stay separate text_special tokens, so the
    # serializer can write them back with their source spelling
    md.disable("text_join")
    if Extension.tables in extensions:
        md.enable("table")
    if Extension.strikethrough in extensions:
        md.enable("strikethrough")
    if Extension.footnotes in extensions:
        # mdBook has no inline ^[...] footnotes
        md.use(footnote_plugin, inline=False)
    if Extension.tasklists in extensions:
        md.use(tasklists_plugin)
    return md
