"""
Stream builder for resolving which streams apply to a read or write.

A builder is configured in one of two mutually exclusive modes:

- EXPLICIT: streams are declared directly and the file name is ignored
- DEFERRED: options are recorded per stream type and applied once the
  file name's trailing extensions have been parsed

The resolved Pipeline lists streams innermost first: the rightmost
extension of a file name is the outermost layer around the raw bytes.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging
import os

from .base import Direction
from .descriptor import Pipeline
from .exceptions import InvalidConfigurationError, UnknownTransformTypeError

logger = logging.getLogger("stream_chain")

# Declaring this stream prevents any streams from being applied
NO_STREAMS = "none"

# Character set conversion always applies to fully decoded bytes
ENCODE = "encode"


class BuilderMode(Enum):
    """Configuration mode of a StreamBuilder."""

    UNSET = "unset"
    EXPLICIT = "explicit"
    DEFERRED = "deferred"


class StreamBuilder:
    """
    Builds the pipeline of streams for a single read or write.

    Example (streams inferred from the file name):
        >>> builder = StreamBuilder("export/users.csv.gz")
        >>> builder.declare_deferred("gz", compresslevel=6)
        >>> builder.resolve().types
        ('gz',)

    Example (explicit streams):
        >>> builder = StreamBuilder()
        >>> builder.declare_explicit("encode", encoding="iso-8859-1").declare_explicit("zip")
        >>> builder.reader(raw, lambda text: text.read())

    Example (no streams at all, whatever the file name says):
        >>> StreamBuilder("backup.zip").declare_explicit("none").resolve()
        Pipeline([])
    """

    def __init__(self, file_name: Optional[str] = None, registry=None):
        """
        Initialize the builder.

        Args:
            file_name: File name (or path) whose trailing extensions select the streams
            registry: ExtensionRegistry to validate stream types against.
                      Defaults to the global registry.
        """
        from .registry import get_registry

        self.file_name = os.fspath(file_name) if file_name is not None else None
        self.registry = registry if registry is not None else get_registry()
        self._mode = BuilderMode.UNSET
        self._declarations: Dict[str, Dict[str, Any]] = {}
        self._sealed = False

    @property
    def mode(self) -> BuilderMode:
        """The configuration mode, fixed by the first declaration."""
        return self._mode

    def declare_explicit(self, stream_type: str, **options: Any) -> "StreamBuilder":
        """
        Declare a stream to apply regardless of the file name.

        Declaring the same stream again merges the options. Declaring 'none'
        clears all streams and prevents any further declarations.

        Raises:
            InvalidConfigurationError: If deferred options were already recorded,
                or 'none' was already declared
            UnknownTransformTypeError: If the stream type is not registered
        """
        stream_type = self._normalize(stream_type)
        if self._mode is BuilderMode.DEFERRED:
            raise InvalidConfigurationError(
                "Cannot declare both explicit streams and deferred options on the same builder",
                stream_type=stream_type,
            )

        if stream_type == NO_STREAMS:
            self._mode = BuilderMode.EXPLICIT
            self._declarations = {}
            self._sealed = True
            return self

        if self._sealed:
            raise InvalidConfigurationError(
                f"Cannot declare stream {stream_type!r} after '{NO_STREAMS}' was declared",
                stream_type=stream_type,
            )
        self._check_registered(stream_type)

        self._mode = BuilderMode.EXPLICIT
        self._merge(stream_type, options)
        return self

    def declare_deferred(self, stream_type: str, **options: Any) -> "StreamBuilder":
        """
        Record options that only apply if the file name includes the stream's extension.

        Options recorded for 'encode' always apply, as the innermost stream.

        Raises:
            UnknownTransformTypeError: If the stream type is not registered
            InvalidConfigurationError: If explicit streams were already declared,
                or no file name is set
        """
        stream_type = self._normalize(stream_type)
        self._check_registered(stream_type)
        if self._mode is BuilderMode.EXPLICIT:
            raise InvalidConfigurationError(
                "Cannot declare both explicit streams and deferred options on the same builder",
                stream_type=stream_type,
            )
        if not self.file_name:
            raise InvalidConfigurationError(
                "Cannot record deferred options unless the file name is set",
                stream_type=stream_type,
            )

        self._mode = BuilderMode.DEFERRED
        self._merge(stream_type, options)
        return self

    def declare_auto(self, stream_type: str, **options: Any) -> "StreamBuilder":
        """
        Declare explicitly once explicit streams exist, otherwise defer when a
        file name is available, otherwise declare explicitly.
        """
        if self._mode is BuilderMode.EXPLICIT:
            return self.declare_explicit(stream_type, **options)
        if self.file_name:
            return self.declare_deferred(stream_type, **options)
        return self.declare_explicit(stream_type, **options)

    def setting_for(self, stream_type: str) -> Optional[Dict[str, Any]]:
        """Return the options recorded for a stream type, or None."""
        options = self._declarations.get(self._normalize(stream_type))
        return dict(options) if options is not None else None

    def resolve(self) -> Pipeline:
        """
        Return the pipeline of streams with their options.

        Explicit declarations are returned as declared. Otherwise the
        streams come from the file name's trailing extensions, preceded by
        'encode' when options were recorded for it.
        """
        if self._mode is BuilderMode.EXPLICIT:
            return Pipeline.from_mapping(self._declarations)
        if not self.file_name:
            return Pipeline()

        built: Dict[str, Dict[str, Any]] = {}
        if ENCODE in self._declarations:
            built[ENCODE] = self._declarations[ENCODE]

        for extension in self.parse_extensions():
            built[extension] = self._declarations.get(extension, {})

        logger.debug("Resolved %s to streams: %s", self.file_name, list(built))
        return Pipeline.from_mapping(built)

    def parse_extensions(self) -> List[str]:
        """
        Return the registered extensions at the end of the file name, left to right.

        Parsing stops at the first trailing segment that is not registered,
        so 'a.b.gz' yields ['gz'] unless 'b' is also registered.
        """
        if not self.file_name:
            return []

        parts = os.path.basename(self.file_name).split(".")
        # 'data.gz.' resolves like 'data.gz'
        while parts and not parts[-1]:
            parts.pop()
        extensions: List[str] = []
        while parts:
            extension = parts.pop().lower()
            if not self.registry.has_extension(extension):
                break
            extensions.insert(0, extension)
        return extensions

    def reader(self, io: Any, block: Optional[Callable[[Any], Any]] = None) -> Any:
        """Read from `io` through the resolved streams, passing the decoded stream to `block`."""
        return self._execute(Direction.READ, io, block)

    def writer(self, io: Any, block: Optional[Callable[[Any], Any]] = None) -> Any:
        """Write to `io` through the resolved streams, passing the encoding stream to `block`."""
        return self._execute(Direction.WRITE, io, block)

    def _execute(self, direction: Direction, io: Any, block: Optional[Callable[[Any], Any]]) -> Any:
        from .executor import ChainExecutor

        return ChainExecutor(self.registry).execute(direction, self.resolve(), io, block)

    def _normalize(self, stream_type: str) -> str:
        return str(stream_type).lower()

    def _check_registered(self, stream_type: str):
        if not self.registry.has_extension(stream_type):
            raise UnknownTransformTypeError(stream_type, self.registry.extensions)

    def _merge(self, stream_type: str, options: Dict[str, Any]):
        if stream_type in self._declarations:
            self._declarations[stream_type].update(options)
        else:
            self._declarations[stream_type] = dict(options)

    def __repr__(self):
        return f"StreamBuilder(file_name={self.file_name!r}, mode={self._mode.value})"
