"""
Exception hierarchy for the digest pipeline
"""


class DigestError(Exception):
    """Base error for the digest pipeline."""


class ConfigError(DigestError):
    """Missing credential or invalid configuration. Fatal before any network activity."""


class WindowSelectionError(DigestError):
    """No candidate publication mark could be computed."""


class PostValidationError(DigestError):
    """The assembled post violates the post schema."""
