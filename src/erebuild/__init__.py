"""erebuild - builds the client's native dependencies before compilation."""

__version__ = "0.3.0"
