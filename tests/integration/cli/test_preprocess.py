"""Integration tests for the preprocessor protocol (stdin -> stdout) and the supports command"""

import json

from typer.testing import CliRunner

from mdbook_mermaid.cli.cli import app


def _input(content: str, renderer: str = "html", options: dict = None) -> str:
    context = {
        "root": "/book",
        "config": {"preprocessor": {"mermaid": options or {}}},
        "renderer": renderer,
        "mdbook_version": "0.4.40",
    }
    book = {
        "sections": [{"Chapter": {
            "name": "Chapter", "content": content, "number": [1], "sub_items": [],
            "path": "chapter.md", "source_path": "chapter.md", "parent_names": [],
        }}],
        "__non_exhaustive": None,
    }
    return json.dumps([context, book])


def test_preprocess_rewrites_book(chapter_md, chapter_html):
    """Book JSON on stdin comes back on stdout with mermaid blocks replaced."""
    result = CliRunner().invoke(app, [], input=_input(chapter_md))
    assert result.exit_code == 0, result.output
    book = json.loads(result.stdout)
    assert book["sections"][0]["Chapter"]["content"] == chapter_html
    assert "__non_exhaustive" in book


def test_preprocess_passes_through_for_unsupported_renderer(chapter_md):
    """A renderer outside the configured list gets the book unchanged."""
    result = CliRunner().invoke(app, [], input=_input(chapter_md, renderer="latex"))
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["sections"][0]["Chapter"]["content"] == chapter_md


def test_preprocess_uses_book_toml_options():
    """[preprocessor.mermaid] options from the context configure the run."""
    content = "```graph\nA\n```"
    result = CliRunner().invoke(app, [], input=_input(content, options={"label": "graph", "css_class": "g"}))
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["sections"][0]["Chapter"]["content"] == '<pre class="g">A\n</pre>'


def test_preprocess_rejects_invalid_input():
    """Malformed JSON exits 1 with an error message."""
    result = CliRunner().invoke(app, [], input="not json")
    assert result.exit_code == 1
    assert "Invalid preprocessor input" in result.output


def test_supports_html():
    result = CliRunner().invoke(app, ["supports", "html"])
    assert result.exit_code == 0


def test_supports_other_renderer():
    result = CliRunner().invoke(app, ["supports", "latex"])
    assert result.exit_code == 1


def test_supports_reads_env_renderers(monkeypatch):
    """MDBOOK_MERMAID_RENDERERS widens the supported set."""
    monkeypatch.setenv("MDBOOK_MERMAID_RENDERERS", "html,latex")
    result = CliRunner().invoke(app, ["supports", "latex"])
    assert result.exit_code == 0
