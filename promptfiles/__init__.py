"""promptfiles: read files under one or more roots into a single LLM prompt."""

__version__ = "0.4.0"
