"""Recursive rewrite of chapter bodies across a book's section tree"""

import logging
from typing import Callable

from mdbook_mermaid.book.models import BookItem, Chapter, ChapterItem
from mdbook_mermaid.errors import MermaidError

logger = logging.getLogger(__name__)


def apply_to_sections(sections: list[BookItem], rewrite: Callable[[str], str]) -> None:
    """Rewrite every chapter in place; separators and part titles are left alone."""
    for item in sections:
        if isinstance(item, ChapterItem):
            apply_to_chapter(item.chapter, rewrite)


def apply_to_chapter(chapter: Chapter, rewrite: Callable[[str], str]) -> None:
    """Rewrite one chapter's content, then its sub-chapters."""
    logger.debug("Processing chapter %r", chapter.name)
    try:
        chapter.content = rewrite(chapter.content)
    except MermaidError as e:
        raise type(e)(f"Failed to process chapter '{chapter.name}': {e}") from e

    apply_to_sections(chapter.sub_items, rewrite)
