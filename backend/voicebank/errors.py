"""
Error taxonomy for voicebank imports.

Malformed lines inside legacy control files are not errors; the parsers
skip them and report a skip count instead.
"""


class VoicebankError(Exception):
    """Base class for all voicebank import failures."""


class ConfigurationError(VoicebankError, ValueError):
    """The import root is unusable (non-ASCII or too long)."""


class DetectionError(VoicebankError):
    """The text encoding of an archive could not be determined."""


class ArchiveError(VoicebankError, OSError):
    """The archive could not be opened or read."""
