"""
Hard errors raised by the engine. Missing or malformed ingredient data is never
an error; only a knowledge base that cannot be obtained at all is.
"""


class HalalEngineError(Exception):
    """Base exception for the halal evaluation engine."""


class KnowledgeBaseUnavailableError(HalalEngineError):
    """The knowledge base is absent, unreadable, or was passed as None."""
