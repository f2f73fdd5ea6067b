class Lz4jbError(Exception):
    """Base class for lz4jb-specific errors."""


# Setup
class ConfigurationError(Lz4jbError, ValueError):
    pass


# Stream structure
class FormatError(Lz4jbError):
    pass


class StreamFinishedError(FormatError):
    pass


class TruncationError(Lz4jbError, EOFError):
    pass


# Integrity
class CorruptionError(Lz4jbError):
    pass


# Compression primitives
class BackendError(Lz4jbError):
    pass


class DecompressionError(BackendError, CorruptionError):
    pass
