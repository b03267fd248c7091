"""Root test configuration: environment isolation and shared markdown samples"""

import pytest

from mdbook_mermaid.config import ENV_PREFIX, Settings


CHAPTER_MD = """\
# Chapter

```mermaid
graph TD
A --> B
```

Text
"""

CHAPTER_HTML = """\
# Chapter

<pre class="mermaid">graph TD
A --> B
</pre>

Text"""

# Already in serializer-normal form, so it must round-trip byte for byte
EXTENSIONS_MD = """\
# Title

Some ~~struck~~ text with **bold** and *em*.

| Name | Value |
| --- | :---: |
| a | b |

- [ ] todo
- [x] done

Text with a note[^1].

[^1]: The note."""


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run each test from a clean tmp directory with no MDBOOK_MERMAID_* variables set."""
    monkeypatch.chdir(tmp_path)
    for name in Settings.model_fields:
        monkeypatch.delenv(f"{ENV_PREFIX}{name.upper()}", raising=False)


@pytest.fixture(name="chapter_md")
def chapter_md_fixture():
    return CHAPTER_MD


@pytest.fixture(name="chapter_html")
def chapter_html_fixture():
    return CHAPTER_HTML


@pytest.fixture(name="extensions_md")
def extensions_md_fixture():
    return EXTENSIONS_MD
