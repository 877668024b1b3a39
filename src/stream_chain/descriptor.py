"""
Stream specification value objects.

A StreamSpec is a single (stream type, options) pair; a Pipeline is the
ordered, immutable sequence of StreamSpecs a builder resolves to.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple


class StreamSpec:
    """
    Value object representing a single stream in a pipeline.

    Attributes:
        stream_type: Extension symbol (e.g. 'gz', 'zip', 'encode')
        options: Read-only options passed to the stream

    Example:
        >>> spec = StreamSpec("zip", {"entry_file_name": "report.csv"})
        >>> spec.to_dict()
        {'stream': 'zip', 'options': {'entry_file_name': 'report.csv'}}
    """

    __slots__ = ("_stream_type", "_options")

    def __init__(self, stream_type: str, options: Optional[Mapping[str, Any]] = None):
        self._stream_type = stream_type
        self._options = MappingProxyType(dict(options or {}))

    @property
    def stream_type(self) -> str:
        """The extension symbol."""
        return self._stream_type

    @property
    def options(self) -> Mapping[str, Any]:
        """Read-only options for the stream."""
        return self._options

    def to_dict(self) -> Dict[str, Any]:
        return {"stream": self._stream_type, "options": dict(self._options)}

    def __eq__(self, other):
        if not isinstance(other, StreamSpec):
            return NotImplemented
        return self._stream_type == other._stream_type and dict(self._options) == dict(other._options)

    def __hash__(self):
        return hash(self._stream_type)

    def __repr__(self):
        return f"StreamSpec(stream={self._stream_type}, options={dict(self._options)})"


class Pipeline:
    """
    Ordered, immutable sequence of StreamSpecs.

    Stream types are unique within a pipeline. The first spec is the
    innermost layer (closest to the caller's block) and the last spec is
    the outermost layer, applied directly to the raw stream.

    Example:
        >>> pipeline = StreamBuilder("data.csv.gz").resolve()
        >>> pipeline.types
        ('gz',)
    """

    __slots__ = ("_specs",)

    def __init__(self, specs: Iterable[StreamSpec] = ()):
        specs = tuple(specs)
        seen = set()
        for spec in specs:
            if spec.stream_type in seen:
                raise ValueError(f"Duplicate stream type in pipeline: {spec.stream_type!r}")
            seen.add(spec.stream_type)
        self._specs: Tuple[StreamSpec, ...] = specs

    @classmethod
    def from_mapping(cls, streams: Mapping[str, Mapping[str, Any]]) -> "Pipeline":
        """Build a pipeline from an ordered {stream_type: options} mapping."""
        return cls(StreamSpec(stream_type, options) for stream_type, options in streams.items())

    @property
    def types(self) -> Tuple[str, ...]:
        """Stream types in pipeline order."""
        return tuple(spec.stream_type for spec in self._specs)

    def get(self, stream_type: str) -> Optional[Mapping[str, Any]]:
        """Return the options for `stream_type`, or None if it is not in the pipeline."""
        for spec in self._specs:
            if spec.stream_type == stream_type:
                return spec.options
        return None

    def to_dict(self) -> List[Dict[str, Any]]:
        return [spec.to_dict() for spec in self._specs]

    def __iter__(self) -> Iterator[StreamSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __bool__(self) -> bool:
        return bool(self._specs)

    def __contains__(self, stream_type) -> bool:
        return stream_type in self.types

    def __getitem__(self, index: int) -> StreamSpec:
        return self._specs[index]

    def __eq__(self, other):
        if not isinstance(other, Pipeline):
            return NotImplemented
        return self._specs == other._specs

    def __hash__(self):
        return hash(self.types)

    def __repr__(self):
        return f"Pipeline({list(self._specs)!r})"
