"""Local LLM chat client with persistent sessions."""

__version__ = "0.1.0"
