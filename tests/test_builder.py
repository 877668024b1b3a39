"""
Tests for StreamBuilder: declaration modes and pipeline resolution.
"""

import gzip
import io

import pytest
from stream_chain import (
    BuilderMode,
    ExtensionRegistry,
    StreamBuilder,
)
from stream_chain.compression import GzipReader, GzipWriter
from stream_chain.exceptions import (
    InvalidConfigurationError,
    UnknownTransformTypeError,
)


@pytest.fixture
def registry():
    return ExtensionRegistry()


@pytest.fixture
def gz_only():
    registry = ExtensionRegistry(register_defaults=False)
    registry.register("gz", reader=GzipReader, writer=GzipWriter)
    return registry


class TestExtensionParsing:
    """Streams inferred from the file name's trailing extensions."""

    def test_extensions_in_file_name_order(self, registry):
        builder = StreamBuilder("export.csv.zip.gz", registry=registry)
        assert builder.resolve().types == ("zip", "gz")

    def test_stops_at_unregistered_extension(self, gz_only):
        builder = StreamBuilder("a.b.gz", registry=gz_only)
        assert builder.resolve().types == ("gz",)

    def test_extensions_must_be_contiguous(self, registry):
        assert StreamBuilder("a.gz.csv", registry=registry).resolve().types == ()
        assert StreamBuilder("a.gz.b.zip", registry=registry).resolve().types == ("zip",)

    def test_extensions_are_case_insensitive(self, registry):
        assert StreamBuilder("DATA.TXT.GZ", registry=registry).resolve().types == ("gz",)

    def test_only_base_name_is_parsed(self, registry):
        builder = StreamBuilder("/tmp/archive.zip/data.txt.gz", registry=registry)
        assert builder.resolve().types == ("gz",)

    def test_no_extensions(self, registry):
        assert StreamBuilder("README", registry=registry).resolve().types == ()

    def test_trailing_dots_are_ignored(self, registry):
        assert StreamBuilder("data.gz.", registry=registry).resolve().types == ("gz",)
        assert StreamBuilder("data.gz..", registry=registry).resolve().types == ("gz",)

    def test_only_dots(self, registry):
        assert StreamBuilder("...", registry=registry).resolve().types == ()

    def test_no_file_name(self, registry):
        assert len(StreamBuilder(registry=registry).resolve()) == 0

    def test_parse_extensions(self, registry):
        assert StreamBuilder("a.bz2.xz", registry=registry).parse_extensions() == ["bz2", "xz"]

    def test_extensions_default_to_empty_options(self, registry):
        pipeline = StreamBuilder("data.gz", registry=registry).resolve()
        assert dict(pipeline.get("gz")) == {}


class TestDeferredOptions:
    """Options recorded now and applied once extensions are parsed."""

    def test_options_applied_to_parsed_extension(self, registry):
        builder = StreamBuilder("data.csv.gz", registry=registry)
        builder.declare_deferred("gz", compresslevel=6)

        pipeline = builder.resolve()
        assert pipeline.types == ("gz",)
        assert dict(pipeline.get("gz")) == {"compresslevel": 6}

    def test_options_for_absent_extension_are_ignored(self, registry):
        builder = StreamBuilder("data.gz", registry=registry)
        builder.declare_deferred("zip", entry_file_name="data.csv")

        assert builder.resolve().types == ("gz",)

    def test_encode_is_always_first(self, registry):
        builder = StreamBuilder("data.gz", registry=registry)
        builder.declare_deferred("encode", encoding="utf-8")

        pipeline = builder.resolve()
        assert pipeline.types == ("encode", "gz")
        assert dict(pipeline.get("encode")) == {"encoding": "utf-8"}

    def test_encode_first_with_many_extensions(self, registry):
        builder = StreamBuilder("data.zip.gz", registry=registry)
        builder.declare_deferred("gz", compresslevel=1)
        builder.declare_deferred("encode", encoding="iso-8859-1")

        assert builder.resolve().types == ("encode", "zip", "gz")

    def test_deferred_encode_wins_over_literal_extension(self, registry):
        builder = StreamBuilder("data.encode.gz", registry=registry)
        builder.declare_deferred("encode", encoding="utf-16")

        pipeline = builder.resolve()
        assert pipeline.types == ("encode", "gz")
        assert dict(pipeline.get("encode")) == {"encoding": "utf-16"}

    def test_literal_encode_extension_without_options(self, registry):
        builder = StreamBuilder("data.gz.encode", registry=registry)
        assert builder.resolve().types == ("gz", "encode")

    def test_options_are_merged(self, registry):
        builder = StreamBuilder("data.zip", registry=registry)
        builder.declare_deferred("zip", entry_file_name="a.csv")
        builder.declare_deferred("zip", buffer_size=1024)

        assert builder.setting_for("zip") == {"entry_file_name": "a.csv", "buffer_size": 1024}

    def test_later_option_value_wins(self, registry):
        builder = StreamBuilder("data.zip", registry=registry)
        builder.declare_deferred("zip", entry_file_name="a.csv").declare_deferred("zip", entry_file_name="b.csv")

        assert dict(builder.resolve().get("zip")) == {"entry_file_name": "b.csv"}

    def test_requires_file_name(self, registry):
        with pytest.raises(InvalidConfigurationError):
            StreamBuilder(registry=registry).declare_deferred("gz")

    def test_requires_non_empty_file_name(self, registry):
        with pytest.raises(InvalidConfigurationError):
            StreamBuilder("", registry=registry).declare_deferred("gz")

    def test_unknown_stream_type(self, registry):
        with pytest.raises(UnknownTransformTypeError) as exc_info:
            StreamBuilder("data.gz", registry=registry).declare_deferred("gzz")

        assert "gz" in exc_info.value.suggestions

    def test_sets_deferred_mode(self, registry):
        builder = StreamBuilder("data.gz", registry=registry).declare_deferred("gz")
        assert builder.mode is BuilderMode.DEFERRED


class TestExplicitStreams:
    """Streams declared directly, independent of the file name."""

    def test_declaration_order_is_kept(self, registry):
        builder = StreamBuilder("data.zip", registry=registry)
        builder.declare_explicit("encode", encoding="utf-8").declare_explicit("gz")

        pipeline = builder.resolve()
        assert pipeline.types == ("encode", "gz")
        assert dict(pipeline.get("encode")) == {"encoding": "utf-8"}

    def test_works_without_file_name(self, registry):
        assert StreamBuilder(registry=registry).declare_explicit("bz2").resolve().types == ("bz2",)

    def test_repeated_declaration_merges_options(self, registry):
        builder = StreamBuilder(registry=registry)
        builder.declare_explicit("gz", compresslevel=1)
        builder.declare_explicit("zip")
        builder.declare_explicit("gz", extra=True)

        pipeline = builder.resolve()
        assert pipeline.types == ("gz", "zip")
        assert dict(pipeline.get("gz")) == {"compresslevel": 1, "extra": True}

    def test_stream_type_is_normalized(self, registry):
        builder = StreamBuilder(registry=registry).declare_explicit("GZ")
        assert builder.resolve().types == ("gz",)
        assert builder.setting_for("Gz") == {}

    def test_unknown_stream_type(self, registry):
        with pytest.raises(UnknownTransformTypeError):
            StreamBuilder(registry=registry).declare_explicit("rar")

    def test_sets_explicit_mode(self, registry):
        builder = StreamBuilder(registry=registry)
        assert builder.mode is BuilderMode.UNSET
        builder.declare_explicit("gz")
        assert builder.mode is BuilderMode.EXPLICIT


class TestNoStreams:
    """Declaring 'none' prevents any stream from being applied."""

    def test_overrides_file_name(self, registry):
        builder = StreamBuilder("backup.tar.gz", registry=registry).declare_explicit("none")
        assert builder.resolve().types == ()

    def test_clears_prior_declarations(self, registry):
        builder = StreamBuilder(registry=registry)
        builder.declare_explicit("gz").declare_explicit("none")

        assert len(builder.resolve()) == 0

    def test_locks_out_further_streams(self, registry):
        builder = StreamBuilder(registry=registry).declare_explicit("none")
        with pytest.raises(InvalidConfigurationError):
            builder.declare_explicit("gz")

    def test_locks_out_deferred_options(self, registry):
        builder = StreamBuilder("data.gz", registry=registry).declare_explicit("none")
        with pytest.raises(InvalidConfigurationError):
            builder.declare_deferred("gz")

    def test_none_can_be_repeated(self, registry):
        builder = StreamBuilder(registry=registry).declare_explicit("NONE").declare_explicit("none")
        assert len(builder.resolve()) == 0

    def test_reader_passes_raw_stream(self, registry):
        raw = io.BytesIO(b"plain bytes")
        builder = StreamBuilder("data.gz", registry=registry).declare_explicit("none")

        assert builder.reader(raw, lambda stream: stream) is raw


class TestModeExclusion:
    """Explicit and deferred declarations cannot be mixed."""

    def test_explicit_then_deferred(self, registry):
        builder = StreamBuilder("data.gz", registry=registry).declare_explicit("gz")
        with pytest.raises(InvalidConfigurationError):
            builder.declare_deferred("gz")

    def test_deferred_then_explicit(self, registry):
        builder = StreamBuilder("data.gz", registry=registry).declare_deferred("gz")
        with pytest.raises(InvalidConfigurationError):
            builder.declare_explicit("gz")

    def test_deferred_then_none(self, registry):
        builder = StreamBuilder("data.gz", registry=registry).declare_deferred("gz")
        with pytest.raises(InvalidConfigurationError):
            builder.declare_explicit("none")

    def test_failed_declaration_keeps_state(self, registry):
        builder = StreamBuilder("data.gz", registry=registry).declare_deferred("gz", compresslevel=2)
        with pytest.raises(InvalidConfigurationError):
            builder.declare_explicit("zip")

        assert builder.mode is BuilderMode.DEFERRED
        assert builder.resolve().types == ("gz",)


class TestDeclareAuto:
    """declare_auto picks the mode from the builder's state."""

    def test_defers_when_file_name_set(self, registry):
        builder = StreamBuilder("data.gz", registry=registry).declare_auto("gz", compresslevel=3)

        assert builder.mode is BuilderMode.DEFERRED
        assert builder.resolve().types == ("gz",)

    def test_explicit_without_file_name(self, registry):
        builder = StreamBuilder(registry=registry).declare_auto("gz")

        assert builder.mode is BuilderMode.EXPLICIT
        assert builder.resolve().types == ("gz",)

    def test_explicit_once_streams_declared(self, registry):
        builder = StreamBuilder("data.gz", registry=registry)
        builder.declare_explicit("zip").declare_auto("encode", encoding="utf-8")

        assert builder.mode is BuilderMode.EXPLICIT
        assert builder.resolve().types == ("zip", "encode")


class TestSettingFor:
    """Options recorded for a stream type."""

    def test_explicit_setting(self, registry):
        builder = StreamBuilder(registry=registry).declare_explicit("gz", compresslevel=4)
        assert builder.setting_for("gz") == {"compresslevel": 4}

    def test_deferred_setting(self, registry):
        builder = StreamBuilder("x.zip", registry=registry).declare_deferred("zip", entry_file_name="a")
        assert builder.setting_for("zip") == {"entry_file_name": "a"}

    def test_missing_setting(self, registry):
        assert StreamBuilder(registry=registry).setting_for("gz") is None

    def test_returns_copy(self, registry):
        builder = StreamBuilder(registry=registry).declare_explicit("gz", compresslevel=4)
        builder.setting_for("gz")["compresslevel"] = 1

        assert builder.setting_for("gz") == {"compresslevel": 4}


class TestResolve:
    """Resolution is pure and the result is immutable."""

    def test_resolving_twice_is_equal(self, registry):
        builder = StreamBuilder("data.zip.gz", registry=registry)
        builder.declare_deferred("encode", encoding="utf-8").declare_deferred("gz", compresslevel=1)

        assert builder.resolve() == builder.resolve()

    def test_pipeline_not_affected_by_later_declarations(self, registry):
        builder = StreamBuilder(registry=registry).declare_explicit("gz", compresslevel=1)
        pipeline = builder.resolve()
        builder.declare_explicit("gz", compresslevel=9)

        assert dict(pipeline.get("gz")) == {"compresslevel": 1}
        assert dict(builder.resolve().get("gz")) == {"compresslevel": 9}

    def test_pipeline_options_are_read_only(self, registry):
        pipeline = StreamBuilder(registry=registry).declare_explicit("gz").resolve()
        with pytest.raises(TypeError):
            pipeline.get("gz")["compresslevel"] = 1


class TestReaderWriter:
    """Builders run their resolved pipeline through the executor."""

    def test_report_csv_gz_reads_through_gzip(self, gz_only):
        raw = io.BytesIO(gzip.compress(b"id,name\n1,alice\n"))
        builder = StreamBuilder("report.csv.gz", registry=gz_only)

        assert builder.resolve().types == ("gz",)
        assert builder.reader(raw, lambda stream: stream.read()) == b"id,name\n1,alice\n"

    def test_encode_is_innermost_when_reading(self, registry):
        raw = io.BytesIO(gzip.compress("café\n".encode("utf-8")))
        builder = StreamBuilder("data.gz", registry=registry)
        builder.declare_deferred("encode", encoding="utf-8")

        assert builder.reader(raw, lambda text: text.read()) == "café\n"

    def test_writer_round_trip(self, registry):
        raw = io.BytesIO()
        StreamBuilder("data.txt.gz", registry=registry).writer(raw, lambda stream: stream.write(b"hello"))

        assert gzip.decompress(raw.getvalue()) == b"hello"
