"""Error types raised while rewriting a document body"""


class MermaidError(RuntimeError):
    """Base class for failures that abort processing of a document."""


class InternalConsistencyFault(MermaidError):
    """A fenced code block closed with a different label than it opened with."""


class SerializationError(MermaidError):
    """The event stream could not be turned back into markdown text."""
