"""File discovery and markdown-it tokenization into events"""

from pathlib import Path
from typing import Iterator

from mdbook_mermaid.core.dialect import DEFAULT_EXTENSIONS, Extension, make_parser
from mdbook_mermaid.core.events import Event, iter_events


MD_EXTENSIONS = {'.md', '.markdown'}


def discover_files(path: Path) -> list[Path]:
    """Return sorted markdown files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)


def parse_events(source: str, extensions: frozenset[Extension] = DEFAULT_EXTENSIONS) -> Iterator[Event]:
    """Tokenize source with the given extensions and return its lazy event stream."""
    tokens = make_parser(extensions).parse(source)
    return iter_events(tokens, source)
