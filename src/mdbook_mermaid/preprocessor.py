"""The mermaid preprocessor: renderer gating plus the book walk"""

import logging

from mdbook_mermaid.book.models import Book, PreprocessorContext
from mdbook_mermaid.book.walk import apply_to_sections
from mdbook_mermaid.config import Settings
from mdbook_mermaid.core.pipeline import add_mermaid

logger = logging.getLogger(__name__)


class MermaidPreprocessor:
    """Rewrites mermaid code blocks in every chapter of a book."""

    name = "mermaid"

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()

    def supports_renderer(self, renderer: str) -> bool:
        return renderer in self.settings.renderers

    def rewrite(self, content: str) -> str:
        return add_mermaid(content, label=self.settings.label, css_class=self.settings.css_class)

    def run(self, ctx: PreprocessorContext, book: Book) -> Book:
        """Return the book with chapters rewritten; unchanged for unsupported renderers."""
        if not self.supports_renderer(ctx.renderer):
            logger.info("Renderer %r is not supported, leaving the book untouched", ctx.renderer)
            return book

        apply_to_sections(book.sections, self.rewrite)
        return book
