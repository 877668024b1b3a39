"""
Base stream interface for the chain execution engine.

This module defines the core abstractions:
- Direction: Enum selecting whether a chain decodes (READ) or encodes (WRITE)
- BaseStream: Abstract base class for every transform in a chain
- BaseReader / BaseWriter: Direction-specific base classes
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional
import logging

from .exceptions import ConfigurationError

logger = logging.getLogger("stream_chain")


class Direction(Enum):
    """
    Orientation requested for a chain execution.

    - READ: each layer decodes the stream it wraps
    - WRITE: each layer encodes what is written to it before passing it on
    """

    READ = "reader"
    WRITE = "writer"


_CONFIG_TYPES = {
    "str": str,
    "int": int,
    "bool": bool,
    "float": (float, int),
    "list": list,
    "dict": dict,
    "any": object,
}


def validate_config_param_type(value: Any, expected_type: str) -> bool:
    """Check that a config parameter value matches the expected schema type."""
    expected_py_type = _CONFIG_TYPES.get(expected_type)
    if expected_py_type is None:
        return True
    if expected_type in ("int", "float") and isinstance(value, bool):
        return False
    return isinstance(value, expected_py_type)


class BaseStream(ABC):
    """
    Base abstract class for all transforms in a stream chain.

    A stream wraps an underlying stream, exposes a single transformed stream
    to the next layer and releases whatever it opened once that layer is done.
    The underlying stream itself is never closed: it belongs to the caller.

    To create a custom stream:
        1. Inherit from BaseReader or BaseWriter
        2. Implement open() as a context manager yielding the transformed stream
        3. Override get_config_schema() to document its options

    Example:
        >>> class UpperReader(BaseReader):
        ...     @contextmanager
        ...     def open(self, io):
        ...         yield io.read().upper()
    """

    def __init__(self, name: str):
        """
        Initialize the stream.

        Args:
            name: Extension symbol the stream was looked up under (e.g. 'gz')
        """
        self.name = name

    @abstractmethod
    def get_direction(self) -> Direction:
        """Return the direction this stream supports."""
        pass

    def get_config_schema(self) -> Dict[str, Any]:
        """
        Return the options schema for this stream.

        Returns:
            Dict with 'required' and 'optional' keys. Each contains param
            definitions with 'type', 'description', and optionally 'default'
            and 'example'.

        Example:
            {
                'required': {},
                'optional': {
                    'compresslevel': {
                        'type': 'int',
                        'description': 'Compression level, 0-9',
                        'default': 9,
                        'example': 6
                    }
                }
            }
        """
        return {"required": {}, "optional": {}}

    def get_description(self) -> str:
        """
        Return a brief description of what this stream does.

        Default implementation uses the class docstring's first line.
        """
        doc = self.__class__.__doc__
        if doc:
            return doc.strip().split("\n")[0]
        return f"{self.__class__.__name__} stream"

    @abstractmethod
    def open(self, io: Any, **options: Any) -> AbstractContextManager:
        """
        Wrap `io` and return a context manager yielding the transformed stream.

        Exiting the context manager must release everything opened on entry,
        whether the body returned or raised.
        """
        pass

    def validate_options(self, options: Mapping[str, Any]) -> None:
        """
        Check options against get_config_schema().

        Raises:
            ConfigurationError: On unknown options, missing required options,
                or values of the wrong type
        """
        schema = self.get_config_schema()
        required = schema.get("required", {})
        optional = schema.get("optional", {})

        unknown = sorted(set(options) - set(required) - set(optional))
        if unknown:
            raise ConfigurationError(
                f"Unknown option(s): {', '.join(unknown)}",
                stream_type=self.name,
                config_schema=schema,
                provided_config=dict(options),
            )

        for param, param_def in required.items():
            if param not in options:
                raise ConfigurationError(
                    f"Missing required option: '{param}'",
                    stream_type=self.name,
                    config_schema=schema,
                    provided_config=dict(options),
                )

        for param, value in options.items():
            param_def = required.get(param) or optional.get(param) or {}
            if value is None and param in optional:
                continue
            if not validate_config_param_type(value, param_def.get("type", "any")):
                raise ConfigurationError(
                    f"Option '{param}' has invalid type, expected {param_def.get('type')}",
                    stream_type=self.name,
                    config_schema=schema,
                    provided_config=dict(options),
                )

    def stream_with(
        self,
        io: Any,
        options: Optional[Mapping[str, Any]],
        block: Callable[[Any], Any],
    ) -> Any:
        """
        Wrap `io`, call `block` once with the transformed stream and return its result.

        This is the entry point used by ChainExecutor. Resources opened by
        this layer are released before this method returns or raises.

        Args:
            io: The underlying stream
            options: Options for this stream, validated against its schema
            block: Callable receiving the transformed stream

        Returns:
            Whatever `block` returns
        """
        options = dict(options or {})
        self.validate_options(options)
        logger.debug("Opening %s %s with options: %s", self.name, self.get_direction().value, options)
        with self.open(io, **options) as wrapped:
            return block(wrapped)

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name}, direction={self.get_direction().value})>"


class BaseReader(BaseStream):
    """Base class for streams that decode an underlying readable stream."""

    def get_direction(self) -> Direction:
        return Direction.READ


class BaseWriter(BaseStream):
    """Base class for streams that encode data written to them onto an underlying writable stream."""

    def get_direction(self) -> Direction:
        return Direction.WRITE
