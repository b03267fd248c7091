"""Document rewrite pipeline: parse -> transform -> serialize"""

import logging
from pathlib import Path

from mdbook_mermaid.core.dialect import DEFAULT_EXTENSIONS, Extension
from mdbook_mermaid.core.parse import discover_files, parse_events
from mdbook_mermaid.core.serialize import serialize
from mdbook_mermaid.core.transform import DEFAULT_CSS_CLASS, DEFAULT_LABEL, transform
from mdbook_mermaid.errors import MermaidError

logger = logging.getLogger(__name__)


def add_mermaid(
    content: str,
    label: str = DEFAULT_LABEL,
    css_class: str = DEFAULT_CSS_CLASS,
    extensions: frozenset[Extension] = DEFAULT_EXTENSIONS,
    ) -> str:
    """Return content with every ``label`` code block replaced by a <pre> element.

    The same extension set is used to parse and to serialize.
    """
    events = parse_events(content, extensions)
    return serialize(transform(events, label, css_class), extensions)


def run_rewrite(
    path: Path,
    output_dir: Path,
    label: str = DEFAULT_LABEL,
    css_class: str = DEFAULT_CSS_CLASS,
    ) -> list[tuple[Path, Path]]:
    """Rewrite every markdown file under path into output_dir, mirroring the tree.

    Returns (source, destination) pairs. Stops at the first file that fails.
    """
    root = path if path.is_dir() else path.parent
    results = []
    for src in discover_files(path):
        try:
            rewritten = add_mermaid(src.read_text(encoding='utf-8'), label, css_class)
        except MermaidError as e:
            raise type(e)(f"Failed to rewrite {src}: {e}") from e
        dest = output_dir / src.relative_to(root)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(rewritten + "\n", encoding='utf-8')
        logger.debug("Rewrote %s -> %s", src, dest)
        results.append((src, dest))
    return results
