"""
Chain executor for nesting stream transforms around a raw stream.

Each stream in the pipeline wraps the stream produced by the layer outside
it and hands its own transformed stream to the layer inside it. The caller's
block receives the innermost stream. Every layer releases its resources as
the call stack unwinds, in reverse order of acquisition.
"""

from functools import reduce
from typing import Any, Callable, Iterable, Optional, Union
import logging

from .base import BaseStream, Direction
from .descriptor import StreamSpec
from .exceptions import MissingCallbackError

logger = logging.getLogger("stream_chain")


class ChainExecutor:
    """
    Executes a pipeline of streams as a single nested call.

    The executor:
    - Calls the block directly with the raw stream for an empty pipeline
    - Resolves each stream from the registry for the requested direction
    - Applies the last stream in the pipeline to the raw stream first,
      ending with the first stream, whose output is passed to the block
    - Lets failures propagate unchanged, after every entered layer has
      released its resources

    Example:
        >>> from stream_chain import ChainExecutor, Direction, StreamBuilder
        >>>
        >>> pipeline = StreamBuilder("data.csv.gz").declare_deferred("encode", encoding="utf-8").resolve()
        >>> executor = ChainExecutor()
        >>> with open("data.csv.gz", "rb") as raw:
        ...     lines = executor.execute(Direction.READ, pipeline, raw, lambda text: text.readlines())
    """

    def __init__(self, registry=None):
        """
        Initialize the chain executor.

        Args:
            registry: ExtensionRegistry used to resolve streams.
                      Defaults to the global registry.
        """
        from .registry import get_registry

        self.registry = registry if registry is not None else get_registry()

    def execute(
        self,
        direction: Union[Direction, str],
        pipeline: Iterable[StreamSpec],
        io: Any,
        block: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """
        Nest the pipeline's streams around `io` and call `block` with the result.

        Args:
            direction: Direction.READ or Direction.WRITE ('reader' / 'writer' also accepted)
            pipeline: Pipeline, or any ordered iterable of StreamSpec
            io: Raw stream to wrap
            block: Callable receiving the fully transformed stream

        Returns:
            Whatever `block` returns

        Raises:
            MissingCallbackError: If no block is supplied
            UnknownTransformTypeError: If a stream type is not registered
            UnsupportedTransformError: If a stream type has no implementation for `direction`
        """
        if block is None:
            raise MissingCallbackError()

        direction = Direction(direction)
        specs = list(pipeline)

        if not specs:
            return block(io)

        logger.debug(
            "Starting %s chain with streams: %s",
            direction.value,
            ", ".join(spec.stream_type for spec in specs),
        )

        try:
            if len(specs) == 1:
                spec = specs[0]
                result = self._stream_for(spec, direction).stream_with(io, spec.options, block)
            else:
                # Daisy chain: each step wraps the previously built callable, so the
                # last spec ends up outermost, applied directly to the raw stream.
                chain = reduce(
                    lambda inner, spec: self._bind(direction, spec, inner),
                    specs,
                    block,
                )
                result = chain(io)
        except Exception as e:
            logger.error("%s chain failed: %s", direction.value.capitalize(), e)
            raise

        logger.debug("Completed %s chain of %d streams", direction.value, len(specs))
        return result

    def _bind(
        self,
        direction: Direction,
        spec: StreamSpec,
        inner: Callable[[Any], Any],
    ) -> Callable[[Any], Any]:
        def call(stream: Any) -> Any:
            return self._stream_for(spec, direction).stream_with(stream, spec.options, inner)

        return call

    def _stream_for(self, spec: StreamSpec, direction: Direction) -> BaseStream:
        return self.registry.get_stream(spec.stream_type, direction)
