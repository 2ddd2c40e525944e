"""End-to-end tests for protoc_gen_swagger.pipeline."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import List, Sequence

import pytest
from google.protobuf.compiler import plugin_pb2

from protoc_gen_swagger.config import CONFIG_FILE_NAME, PluginOptions
from protoc_gen_swagger.descriptor import File, Registry
from protoc_gen_swagger.generator import GenerationError, Generator
from protoc_gen_swagger.models import OutputFile
from protoc_gen_swagger.pipeline import (
    EmitResponse,
    Pipeline,
    ResolutionError,
    TerminateFatally,
    emit,
    invoke,
    run_plugin,
)
from tests._fixtures.request_builder import ECHO_PROTO


class RecordingGenerator(Generator):
    """Generator double that records the batch it receives."""

    def __init__(self, registry: Registry, options: PluginOptions) -> None:
        self.options = options
        self.batches: List[List[str]] = []

    def generate(self, targets: Sequence[File]) -> List[OutputFile]:
        names = [target.name for target in targets]
        self.batches.append(names)
        return [OutputFile(name=f"{name}.out", content=name) for name in names]


class FailingGenerator(Generator):
    def __init__(self, registry: Registry, options: PluginOptions) -> None:
        pass

    def generate(self, targets: Sequence[File]) -> List[OutputFile]:
        raise GenerationError("template exploded")


class BrokenOutput(io.BytesIO):
    def write(self, data) -> int:
        raise OSError("stdout closed")


def _run(payload: bytes, pipeline: Pipeline | None = None) -> tuple[int, bytes]:
    out = io.BytesIO()
    code = run_plugin(io.BytesIO(payload), out, pipeline)
    return code, out.getvalue()


def _response(data: bytes) -> plugin_pb2.CodeGeneratorResponse:
    return plugin_pb2.CodeGeneratorResponse.FromString(data)


def test_run_plugin_generates_swagger(echo_builder) -> None:
    code, data = _run(echo_builder.generate(ECHO_PROTO).serialize())

    assert code == 0
    response = _response(data)
    assert not response.HasField("error")
    assert [f.name for f in response.file] == ["example/echo.swagger.json"]
    document = json.loads(response.file[0].content)
    assert "/v1/example/echo/{id}" in document["paths"]


def test_run_plugin_applies_parameter(echo_builder) -> None:
    payload = echo_builder.generate(ECHO_PROTO).parameter("allow_merge,merge_file_name=api").serialize()

    code, data = _run(payload)

    assert code == 0
    assert [f.name for f in _response(data).file] == ["api.swagger.json"]


def test_run_plugin_reports_missing_target_in_response(echo_builder) -> None:
    code, data = _run(echo_builder.generate("missing.proto").serialize())

    assert code == 0
    response = _response(data)
    assert "missing.proto" in response.error
    assert len(response.file) == 0


def test_run_plugin_with_no_targets_returns_empty_response(echo_builder) -> None:
    code, data = _run(echo_builder.serialize())

    assert code == 0
    response = _response(data)
    assert not response.HasField("error")
    assert len(response.file) == 0


def test_run_plugin_reports_bad_parameter_in_response(echo_builder) -> None:
    payload = echo_builder.generate(ECHO_PROTO).parameter("logtostderr,foo=bar").serialize()

    code, data = _run(payload)

    assert code == 0
    response = _response(data)
    assert response.error.startswith("Cannot set flag foo=bar")
    assert len(response.file) == 0


def test_run_plugin_reports_generation_failure(echo_builder) -> None:
    pipeline = Pipeline(generator_factory=FailingGenerator)

    code, data = _run(echo_builder.generate(ECHO_PROTO).serialize(), pipeline)

    assert code == 0
    assert _response(data).error == "template exploded"


@pytest.mark.parametrize("payload", [b"\x0a\x05ab", b"\xff\xff", b"\x12\x01\xff"])
def test_run_plugin_corrupt_input_is_fatal_and_silent(payload: bytes) -> None:
    code, data = _run(payload)

    assert code == 1
    assert data == b""


def test_emit_write_failure_is_fatal(echo_builder) -> None:
    result = Pipeline().run(io.BytesIO(echo_builder.serialize()))
    assert isinstance(result, EmitResponse)

    assert emit(result, BrokenOutput()) == 1


def test_emit_terminate_fatally_writes_nothing() -> None:
    out = io.BytesIO()
    assert emit(TerminateFatally(reason="bad input"), out) == 1
    assert out.getvalue() == b""


def test_pipeline_run_returns_explicit_results(echo_builder) -> None:
    ok = Pipeline().run(io.BytesIO(echo_builder.generate(ECHO_PROTO).serialize()))
    assert isinstance(ok, EmitResponse)
    assert ok.error is None

    failed = Pipeline().run(io.BytesIO(b"\x0a\x05ab"))
    assert isinstance(failed, TerminateFatally)
    assert "unmarshal" in failed.reason


def test_pipeline_passes_targets_in_request_order(request_builder) -> None:
    for name in ("a.proto", "b.proto", "c.proto"):
        request_builder.add_file(name)
    request_builder.generate("c.proto", "a.proto")
    generators: List[RecordingGenerator] = []

    def factory(registry: Registry, options: PluginOptions) -> RecordingGenerator:
        generators.append(RecordingGenerator(registry, options))
        return generators[-1]

    result = Pipeline(generator_factory=factory).run(io.BytesIO(request_builder.serialize()))

    assert isinstance(result, EmitResponse)
    assert generators[0].batches == [["c.proto", "a.proto"]]
    assert [f.name for f in result.response.file] == ["c.proto.out", "a.proto.out"]


def test_pipeline_registers_mappings_and_prefix(request_builder) -> None:
    request_builder.add_file("a/a.proto")
    request_builder.generate("a/a.proto").parameter("import_prefix=example.com,Ma/a.proto=acme/a")
    registry = Registry()

    Pipeline(registry=registry, generator_factory=RecordingGenerator).run(
        io.BytesIO(request_builder.serialize())
    )

    assert registry.prefix == "example.com"
    assert registry.lookup_file("a/a.proto").package_path == "example.com/acme/a"


def test_pipeline_option_precedence(tmp_path: Path, echo_builder) -> None:
    config_file = tmp_path / CONFIG_FILE_NAME
    config_file.write_text("merge_file_name: from_yaml\nallow_merge: true\nv: 1\n", encoding="utf-8")
    seen: List[PluginOptions] = []
    pipeline = Pipeline(
        config_path=config_file,
        overrides={"merge_file_name": "from_cli", "import_prefix": "cli"},
        on_options=seen.append,
    )
    payload = echo_builder.generate(ECHO_PROTO).parameter("import_prefix=param").serialize()

    result = pipeline.run(io.BytesIO(payload))

    assert isinstance(result, EmitResponse)
    assert [f.name for f in result.response.file] == ["from_cli.swagger.json"]
    assert seen[0].import_prefix == "param"
    assert seen[0].v == 1


def test_pipeline_reports_config_errors_in_response(tmp_path: Path, echo_builder) -> None:
    config_file = tmp_path / CONFIG_FILE_NAME
    config_file.write_text("unknown_option: 1\n", encoding="utf-8")

    code, data = _run(echo_builder.generate(ECHO_PROTO).serialize(), Pipeline(config_path=config_file))

    assert code == 0
    assert "unknown_option" in _response(data).error


def test_invoke_raises_resolution_error(echo_builder) -> None:
    registry = Registry()
    registry.load(echo_builder.build())
    request = echo_builder.generate("ghost.proto").build()

    with pytest.raises(ResolutionError, match="ghost.proto"):
        invoke(request, registry, RecordingGenerator(registry, PluginOptions()))


@pytest.mark.parametrize(
    "parameter",
    ["", "logtostderr", "bogus", "allow_merge", "allow_delete_body=maybe"],
)
def test_responses_never_carry_files_and_error(echo_builder, parameter: str) -> None:
    echo_builder.generate(ECHO_PROTO)
    if parameter:
        echo_builder.parameter(parameter)

    code, data = _run(echo_builder.serialize())

    assert code == 0
    response = _response(data)
    assert bool(response.file) != response.HasField("error")
