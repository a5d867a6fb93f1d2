"""Creator campaign brief generation on top of pluggable LLM backends."""

__version__ = "1.0.0"
