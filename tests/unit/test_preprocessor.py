"""Unit tests for preprocessor.py"""

import logging

from mdbook_mermaid.book.models import Book, PreprocessorContext
from mdbook_mermaid.config import Settings
from mdbook_mermaid.preprocessor import MermaidPreprocessor


def _book(content: str) -> Book:
    return Book.model_validate({
        "sections": [
            {"Chapter": {"name": "Top", "content": content, "sub_items": [
                {"Chapter": {"name": "Child", "content": content, "sub_items": []}},
            ]}},
            "Separator",
        ],
        "__non_exhaustive": None,
    })


def test_supports_renderer_uses_settings():
    """Only renderers listed in settings are supported."""
    preprocessor = MermaidPreprocessor(Settings(renderers=["html", "markdown"]))
    assert preprocessor.supports_renderer("html")
    assert preprocessor.supports_renderer("markdown")
    assert not preprocessor.supports_renderer("latex")


def test_default_settings_support_html_only():
    preprocessor = MermaidPreprocessor()
    assert preprocessor.name == "mermaid"
    assert preprocessor.supports_renderer("html")
    assert not preprocessor.supports_renderer("epub")


def test_run_rewrites_nested_chapters(chapter_md, chapter_html):
    """Every chapter, sub-chapters included, gets its mermaid blocks replaced."""
    book = MermaidPreprocessor().run(PreprocessorContext(renderer="html"), _book(chapter_md))
    top = book.sections[0].chapter
    assert top.content == chapter_html
    assert top.sub_items[0].chapter.content == chapter_html
    assert book.sections[1] == "Separator"


def test_run_leaves_book_untouched_for_other_renderers(chapter_md, caplog):
    """An unsupported renderer gets the book back as it came in."""
    caplog.set_level(logging.INFO, logger="mdbook_mermaid")
    book = MermaidPreprocessor().run(PreprocessorContext(renderer="latex"), _book(chapter_md))
    assert book.sections[0].chapter.content == chapter_md
    assert "'latex' is not supported" in caplog.text


def test_rewrite_uses_configured_label_and_class():
    """Custom label and css_class flow through to the generated element."""
    preprocessor = MermaidPreprocessor(Settings(label="graph", css_class="diagram"))
    out = preprocessor.rewrite("```graph\nA-->B\n```\n\n```mermaid\nC\n```")
    assert out.startswith('<pre class="diagram">A-->B\n</pre>')
    assert "```mermaid\nC\n```" in out
