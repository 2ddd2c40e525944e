"""Wire transport between protoc and the plugin.

protoc writes one serialized ``CodeGeneratorRequest`` to the plugin's stdin and
closes it; the plugin answers with exactly one serialized
``CodeGeneratorResponse`` on stdout. There is no length framing: each message
is the whole stream.
"""

from __future__ import annotations

from typing import BinaryIO, Iterable, Optional

from google.api import annotations_pb2  # noqa: F401  registers the google.api.http method option
from google.protobuf import message as protobuf_message
from google.protobuf.compiler import plugin_pb2

from .logging import get_logger
from .models import OutputFile

logger = get_logger("transport")


class DecodeError(RuntimeError):
    """Raised when the request cannot be read or parsed."""


class EncodeError(RuntimeError):
    """Raised when the response cannot be serialized or written."""


def decode_request(stream: BinaryIO) -> plugin_pb2.CodeGeneratorRequest:
    """Read ``stream`` to exhaustion and parse it as a generation request."""
    logger.debug("Parsing code generator request")
    try:
        payload = stream.read()
    except OSError as exc:
        logger.error("Failed to read code generator request: %s", exc)
        raise DecodeError(f"failed to read code generator request: {exc}") from exc

    request = plugin_pb2.CodeGeneratorRequest()
    try:
        request.ParseFromString(payload)
    except protobuf_message.DecodeError as exc:
        logger.error("Failed to unmarshal code generator request: %s", exc)
        raise DecodeError(f"failed to unmarshal code generator request: {exc}") from exc

    # proto2 strings holding invalid UTF-8 come back as bytes instead of failing the parse.
    invalid = _non_text_field(request)
    if invalid is not None:
        logger.error("Failed to unmarshal code generator request: invalid UTF-8 in %s", invalid)
        raise DecodeError(f"failed to unmarshal code generator request: invalid UTF-8 in {invalid}")
    logger.debug("Parsed code generator request (%d bytes)", len(payload))
    return request


def _non_text_field(request: plugin_pb2.CodeGeneratorRequest) -> Optional[str]:
    if not isinstance(request.parameter, str):
        return "parameter"
    for index, name in enumerate(request.file_to_generate):
        if not isinstance(name, str):
            return f"file_to_generate[{index}]"
    for index, proto in enumerate(request.proto_file):
        if not isinstance(proto.name, str):
            return f"proto_file[{index}].name"
    return None


def build_response(
    files: Optional[Iterable[OutputFile]] = None,
    error: Optional[str] = None,
) -> plugin_pb2.CodeGeneratorResponse:
    """Build a response carrying either generated files or an error message."""
    if error is not None and files:
        raise ValueError("a response carries either files or an error, not both")

    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    if error is not None:
        response.error = error
        return response
    for output in files or ():
        response.file.add(name=output.name, content=output.content)
    return response


def encode_response(response: plugin_pb2.CodeGeneratorResponse, stream: BinaryIO) -> None:
    """Serialize ``response`` and write it to ``stream`` in a single write."""
    try:
        buffer = response.SerializeToString()
    except protobuf_message.EncodeError as exc:
        raise EncodeError(f"failed to marshal code generator response: {exc}") from exc
    try:
        stream.write(buffer)
        stream.flush()
    except OSError as exc:
        raise EncodeError(f"failed to write code generator response: {exc}") from exc
    logger.debug("Wrote code generator response (%d bytes)", len(buffer))


__all__ = [
    "DecodeError",
    "EncodeError",
    "build_response",
    "decode_request",
    "encode_response",
]
