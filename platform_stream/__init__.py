"""Remote platform streaming engine: proxy browser sessions streamed to operators."""

__version__ = "0.1.0"
