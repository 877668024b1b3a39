"""
Pipeline parser for converting JSON definitions to pipelines.

Provides utilities to parse and validate stream pipeline definitions.
"""

import json
from typing import Any, Dict, List, Optional, Union

from .base import Direction, validate_config_param_type
from .builder import NO_STREAMS, StreamBuilder
from .descriptor import Pipeline


class PipelineParser:
    """
    Utility class to parse and validate pipeline definitions.

    A definition is a list of streams, innermost first, the same order
    StreamBuilder.resolve() returns:

        [
            {"stream": "encode", "options": {"encoding": "iso-8859-1"}},
            {"stream": "gz"}
        ]

    Example:
        >>> pipeline = PipelineParser.from_json('[{"stream": "gz"}]')
        >>> ChainExecutor().execute(Direction.READ, pipeline, raw, handle)
    """

    @classmethod
    def _load(cls, definition: Union[str, List[Dict[str, Any]]], name: str) -> List[Any]:
        if isinstance(definition, str):
            try:
                return json.loads(definition)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in pipeline for '{name}': {e}") from e
        if isinstance(definition, list):
            return definition
        raise TypeError(f"definition must be a JSON string or a list, not {type(definition).__name__}")

    @classmethod
    def from_json(
        cls,
        definition: Union[str, List[Dict[str, Any]]],
        name: str = "Unnamed",
        registry=None,
    ) -> Pipeline:
        """
        Transform a pipeline definition into a Pipeline.

        Entries are declared explicitly on a StreamBuilder, so repeated
        streams have their options merged and a 'none' entry clears the
        pipeline.

        Args:
            definition: A list of dictionaries or a JSON string defining the pipeline.
            name: Name for clearer error messages.
            registry: ExtensionRegistry to validate against. Defaults to the global registry.

        Returns:
            The resolved Pipeline.

        Raises:
            ValueError: If JSON is invalid or an entry is missing its 'stream' field.
            TypeError: If input is not a string or a list, the JSON does not hold a list,
                or an entry is not a dict.
            UnknownTransformTypeError: If a stream type is not registered.
            InvalidConfigurationError: If a stream follows a 'none' entry.
        """
        entries = cls._load(definition, name)
        if not isinstance(entries, list):
            raise TypeError(
                f"Pipeline definition for '{name}' must be a list of streams, "
                f"not {type(entries).__name__}"
            )
        builder = StreamBuilder(registry=registry)

        for idx, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise TypeError(
                    f"Pipeline entry at index {idx} in '{name}' must be a dict, "
                    f"not {type(entry).__name__}"
                )
            stream_type = entry.get("stream")
            if not stream_type:
                raise ValueError(
                    f"Pipeline entry at index {idx} in '{name}' "
                    f"is missing required 'stream' field."
                )
            builder.declare_explicit(stream_type, **(entry.get("options") or {}))

        return builder.resolve()

    @classmethod
    def validate(
        cls,
        definition: Union[str, List[Dict[str, Any]]],
        direction: Optional[Direction] = None,
        registry=None,
    ) -> List[str]:
        """
        Validate a pipeline definition without executing it.

        Checks:
        - JSON structure is valid
        - Every entry names a stream
        - Stream types are registered
        - Streams support `direction`, when given
        - Options are known, required options are present and types match

        Returns:
            List of validation error messages (empty if valid).

        Example:
            >>> PipelineParser.validate([{"stream": "gzz"}])
            ["Step 0: Unknown stream 'gzz'"]
        """
        from .registry import get_registry

        if registry is None:
            registry = get_registry()

        errors: List[str] = []

        if isinstance(definition, str):
            try:
                entries = json.loads(definition)
            except json.JSONDecodeError as e:
                return [f"Invalid JSON: {e}"]
        elif isinstance(definition, list):
            entries = definition
        else:
            return [f"Expected JSON string or list, got {type(definition).__name__}"]

        if not isinstance(entries, list):
            return [f"Expected a list of streams, got {type(entries).__name__}"]

        directions = [direction] if direction is not None else list(Direction)

        for idx, entry in enumerate(entries):
            prefix = f"Step {idx}"

            if not isinstance(entry, dict):
                errors.append(f"{prefix}: Expected dict, got {type(entry).__name__}")
                continue

            stream_type = entry.get("stream")
            if not stream_type:
                errors.append(f"{prefix}: Missing required 'stream' field")
                continue
            stream_type = str(stream_type).lower()

            if stream_type == NO_STREAMS:
                continue

            if not registry.has_extension(stream_type):
                errors.append(f"{prefix}: Unknown stream '{stream_type}'")
                continue

            options = entry.get("options") or {}
            if not isinstance(options, dict):
                errors.append(f"{prefix} ({stream_type}): 'options' must be a dict")
                continue

            # Without a direction, the options only need to suit one of the directions
            results = []
            for each in directions:
                stream = registry.lookup(stream_type, each)
                if stream is None:
                    if direction is not None:
                        errors.append(f"{prefix} ({stream_type}): No {each.value} registered")
                    continue
                results.append(
                    cls._validate_options(prefix, stream_type, each, stream.get_config_schema(), options)
                )
            if results and all(results):
                errors.extend(results[0])

        return errors

    @staticmethod
    def _validate_options(
        prefix: str,
        stream_type: str,
        direction: Direction,
        schema: Dict[str, Any],
        options: Dict[str, Any],
    ) -> List[str]:
        errors: List[str] = []
        required = schema.get("required", {})
        optional = schema.get("optional", {})
        label = f"{prefix} ({stream_type} {direction.value})"

        for param in required:
            if param not in options:
                errors.append(f"{label}: Missing required option '{param}'")

        for param, value in options.items():
            param_def = required.get(param) or optional.get(param)
            if param_def is None:
                errors.append(f"{label}: Unknown option '{param}'")
            elif value is not None and not validate_config_param_type(value, param_def.get("type", "any")):
                errors.append(
                    f"{label}: Option '{param}' has invalid type, expected {param_def.get('type')}"
                )

        return errors
