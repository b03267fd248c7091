"""Replace fenced blocks of the target label with a raw <pre> HTML event"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from mdbook_mermaid.core.events import Event, EventKind, Tag, fence_label
from mdbook_mermaid.errors import InternalConsistencyFault

logger = logging.getLogger(__name__)


DEFAULT_LABEL = "mermaid"
DEFAULT_CSS_CLASS = "mermaid"


@dataclass
class Outside:
    """Not inside a target block; events pass through."""


@dataclass
class Inside:
    """Inside a target block; text runs are collected until its end event."""
    buffer: list[str] = field(default_factory=list)


def container_html(code: str, css_class: str = DEFAULT_CSS_CLASS) -> str:
    """Wrap diagram source, unescaped, in the container element plus a blank line."""
    return f'<pre class="{css_class}">{code}</pre>\n\n'


def _is_target(event: Event, kind: EventKind, label: str) -> bool:
    return event.kind is kind and event.tag is Tag.code_block and fence_label(event) == label


def transform(
    events: Iterable[Event],
    label: str = DEFAULT_LABEL,
    css_class: str = DEFAULT_CSS_CLASS,
    ) -> Iterator[Event]:
    """Lazily rewrite the stream: each ``label`` code block becomes one html event.

    Every other event is yielded unchanged and in order. Raises
    InternalConsistencyFault if a target block is closed by a code block end
    with a different label.
    """
    state: Outside | Inside = Outside()

    for event in events:
        if isinstance(state, Outside):
            if _is_target(event, EventKind.start, label):
                state = Inside()
                continue
            yield event
            continue

        if event.kind is EventKind.text:
            state.buffer.append(event.content)
            continue

        if event.kind is EventKind.end and event.tag is Tag.code_block:
            if fence_label(event) != label:
                raise InternalConsistencyFault(
                    f"Code block opened as '{label}' but closed as '{fence_label(event)}'"
                )
            code = "".join(state.buffer)
            logger.debug("Replaced %s block (%d chars)", label, len(code))
            yield Event.html(container_html(code, css_class))
            state = Outside()
            continue

        # Code blocks only ever contain text under the configured dialect
        yield event
