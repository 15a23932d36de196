"""ivyrecall-server: memory recall and relevance ranking for conversational companions."""

__version__ = "0.1.0"
