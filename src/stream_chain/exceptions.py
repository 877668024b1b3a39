"""
Exception classes for Stream Chain.

All exceptions include:
- Descriptive messages with context
- `to_dict()` method for structured JSON output
- Fuzzy-matched suggestions where applicable
"""

from difflib import get_close_matches
from typing import Any, Dict, List, Optional


class StreamChainError(Exception):
    """
    Base exception for all Stream Chain errors.

    Failures raised by the transforms themselves or by the caller's block
    are never wrapped in a StreamChainError; they propagate unchanged.

    Example:
        >>> try:
        ...     StreamBuilder("data.csv.gz").reader(raw, handle)
        ... except StreamChainError as e:
        ...     print(e.to_dict())
    """

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class InvalidConfigurationError(StreamChainError):
    """
    Raised when a StreamBuilder is configured inconsistently.

    Covers mixing explicit and deferred declarations on the same builder,
    declaring anything after the `none` stream, and recording deferred
    options without a file name.

    Attributes:
        message: Human-readable error message
        stream_type: The stream type being declared when the error occurred
    """

    def __init__(self, message: str, stream_type: Optional[str] = None):
        self.message = message
        self.stream_type = stream_type
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "INVALID_CONFIGURATION",
            "message": self.message,
            "stream": self.stream_type,
        }


class UnknownTransformTypeError(StreamChainError):
    """
    Raised when a stream type is not present in the extension registry.

    Includes fuzzy-matched suggestions to help identify typos.

    Attributes:
        stream_type: The unknown stream type that was requested
        valid_types: List of all registered stream types
        suggestions: Fuzzy-matched similar stream types

    Example:
        >>> registry.lookup("gzz", Direction.READ)
        UnknownTransformTypeError: Unknown stream type: 'gzz'.
        Did you mean: gz, gzip?
        Available stream types: bz2, encode, gz, gzip, xz, zip
    """

    def __init__(self, stream_type: str, valid_types: List[str]):
        self.stream_type = stream_type
        self.valid_types = valid_types
        self.suggestions = get_close_matches(
            str(stream_type).lower(),
            [name.lower() for name in valid_types],
            n=3,
            cutoff=0.5,
        )
        # Map back to original case
        self.suggestions = [
            name for name in valid_types
            if name.lower() in self.suggestions
        ]

        message = f"Unknown stream type: {stream_type!r}."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"

        sorted_types = sorted(valid_types)[:10]
        message += f"\nAvailable stream types: {', '.join(sorted_types)}"
        if len(valid_types) > 10:
            message += f" ... ({len(valid_types) - 10} more)"

        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "UNKNOWN_STREAM_TYPE",
            "stream": self.stream_type,
            "suggestions": self.suggestions,
            "valid_types": sorted(self.valid_types),
        }


class UnsupportedTransformError(StreamChainError):
    """
    Raised when a stream type is registered but has no implementation
    for the requested direction, e.g. a read-only format opened for writing.

    Attributes:
        stream_type: The registered stream type
        direction: The direction that has no implementation ('reader' or 'writer')
    """

    def __init__(self, stream_type: str, direction: str):
        self.stream_type = stream_type
        self.direction = direction
        super().__init__(
            f"No {direction} registered for stream type: {stream_type!r}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "UNSUPPORTED_STREAM",
            "message": str(self),
            "stream": self.stream_type,
            "direction": self.direction,
        }


class MissingCallbackError(StreamChainError):
    """Raised when a reader or writer is requested without a block to receive the stream."""

    def __init__(self, message: str = "Stream chain call is missing mandatory block"):
        self.message = message
        super().__init__(message)


class ConfigurationError(StreamChainError):
    """
    Raised when the options passed to a stream are invalid.

    Includes the schema showing required and optional parameters.

    Attributes:
        message: Error description
        stream_type: Name of the misconfigured stream
        config_schema: The expected configuration schema
        provided_config: The invalid options that were provided

    Example:
        >>> raise ConfigurationError(
        ...     "Unknown option: 'level'",
        ...     stream_type="gz",
        ...     config_schema={"required": {}, "optional": {"compresslevel": {...}}},
        ...     provided_config={"level": 3}
        ... )
    """

    def __init__(
        self,
        message: str,
        stream_type: Optional[str] = None,
        config_schema: Optional[Dict[str, Any]] = None,
        provided_config: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.stream_type = stream_type
        self.config_schema = config_schema
        self.provided_config = provided_config

        full_message = message
        if stream_type:
            full_message = f"[{stream_type}] {message}"

        super().__init__(full_message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "CONFIGURATION_ERROR",
            "message": self.message,
            "stream": self.stream_type,
            "config_schema": self.config_schema,
            "provided_config": self.provided_config,
        }


class TypeMismatchError(StreamChainError):
    """
    Raised when a row written to a tabular stream is not a list or tuple.

    Attributes:
        row: The rejected row
    """

    def __init__(self, row: Any, stream_type: Optional[str] = None):
        self.row = row
        self.stream_type = stream_type
        super().__init__(
            f"Rows must be a list or tuple. Invalid row: {type(row).__name__}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "TYPE_MISMATCH",
            "message": str(self),
            "stream": self.stream_type,
            "row_type": type(self.row).__name__,
        }


class InvalidHeaderError(StreamChainError):
    """Raised when the header of a tabular stream is not a list or tuple of column names."""

    def __init__(self, header: Any, stream_type: Optional[str] = None):
        self.header = header
        self.stream_type = stream_type
        super().__init__(
            f"Header must be a list or tuple. Invalid header: {type(header).__name__}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "INVALID_HEADER",
            "message": str(self),
            "stream": self.stream_type,
        }
