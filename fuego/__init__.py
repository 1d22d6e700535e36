"""HTTP request contexts, body deserialization, problem-style errors, middlewares and an engine for handlers."""

__version__ = "0.1.0"