"""CLI behaviour tests."""

from __future__ import annotations

import io
import sys
from pathlib import Path

from google.protobuf.compiler import plugin_pb2

from protoc_gen_swagger.cli import _build_parser, _overrides, main
from tests._fixtures.request_builder import ECHO_PROTO


def test_cli_defaults_to_stdin() -> None:
    args = _build_parser().parse_args([])
    assert args.file == "stdin"
    assert args.import_prefix is None
    assert _overrides(args) == {}


def test_cli_collects_overrides() -> None:
    args = _build_parser().parse_args(["--import_prefix", "github.com/acme", "--verbose"])
    assert _overrides(args) == {
        "import_prefix": "github.com/acme",
        "logtostderr": "true",
        "v": "1",
    }


def test_main_reads_request_from_stdin(monkeypatch, capsysbinary, echo_builder) -> None:
    payload = echo_builder.generate(ECHO_PROTO).serialize()
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(payload)))

    assert main([]) == 0

    response = plugin_pb2.CodeGeneratorResponse.FromString(capsysbinary.readouterr().out)
    assert [f.name for f in response.file] == ["example/echo.swagger.json"]


def test_main_reads_request_from_named_file(tmp_path: Path, capsysbinary, echo_builder) -> None:
    request_file = tmp_path / "request.bin"
    request_file.write_bytes(echo_builder.generate("absent.proto").serialize())

    assert main(["--file", str(request_file)]) == 0

    response = plugin_pb2.CodeGeneratorResponse.FromString(capsysbinary.readouterr().out)
    assert "absent.proto" in response.error


def test_main_missing_input_file_is_fatal(tmp_path: Path, capsysbinary) -> None:
    assert main(["--file", str(tmp_path / "nope.bin")]) == 1

    captured = capsysbinary.readouterr()
    assert captured.out == b""
    assert b"failed to open" in captured.err


def test_main_corrupt_stdin_is_fatal(monkeypatch, capsysbinary) -> None:
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"\x0a\x05ab")))

    assert main([]) == 1

    captured = capsysbinary.readouterr()
    assert captured.out == b""
    assert b"CRITICAL" in captured.err


def test_main_request_log_file_receives_debug_output(
    tmp_path: Path, monkeypatch, capsysbinary, echo_builder
) -> None:
    log_file = tmp_path / "x.log"
    payload = echo_builder.generate(ECHO_PROTO).parameter(f"log_file={log_file},v=1").serialize()
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(payload)))

    assert main([]) == 0

    response = plugin_pb2.CodeGeneratorResponse.FromString(capsysbinary.readouterr().out)
    assert not response.HasField("error")
    assert log_file.exists()
    assert "DEBUG" in log_file.read_text(encoding="utf-8")


def test_main_unopenable_log_file_is_reported_in_response(
    tmp_path: Path, monkeypatch, capsysbinary, echo_builder
) -> None:
    log_file = tmp_path / "missing" / "x.log"
    payload = echo_builder.generate(ECHO_PROTO).parameter(f"log_file={log_file}").serialize()
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(payload)))

    assert main([]) == 0

    response = plugin_pb2.CodeGeneratorResponse.FromString(capsysbinary.readouterr().out)
    assert response.error.startswith("cannot open log file")
    assert len(response.file) == 0
