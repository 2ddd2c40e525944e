"""Decode, dispatch, generate and encode: one plugin invocation end to end."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, List, Mapping, Optional, Union

from google.protobuf.compiler import plugin_pb2

from .config import (
    ConfigError,
    OptionError,
    OptionStore,
    PluginOptions,
    apply_assignments,
    load_config,
)
from .descriptor import File, LoadError, NotFoundError, Registry
from .generator import GenerationError, Generator, SwaggerGenerator
from .logging import get_logger
from .models import OutputFile
from .params import DispatchError, dispatch_parameter
from .transport import DecodeError, EncodeError, build_response, decode_request, encode_response

GeneratorFactory = Callable[[Registry, PluginOptions], Generator]

logger = get_logger("pipeline")


class ResolutionError(RuntimeError):
    """Raised when a file the host asked for is not in the registry."""


@dataclass
class TerminateFatally:
    """No response can be produced; the process must exit non-zero."""

    reason: str


@dataclass
class EmitResponse:
    """A well-formed response, carrying generated files or an error."""

    response: plugin_pb2.CodeGeneratorResponse

    @property
    def error(self) -> Optional[str]:
        return self.response.error if self.response.HasField("error") else None


PipelineResult = Union[TerminateFatally, EmitResponse]

# Failures reported to the host inside the response rather than by exit status.
DOMAIN_ERRORS = (
    ConfigError,
    DispatchError,
    LoadError,
    ResolutionError,
    GenerationError,
)


def invoke(
    request: plugin_pb2.CodeGeneratorRequest,
    registry: Registry,
    generator: Generator,
) -> List[OutputFile]:
    """Resolve ``file_to_generate`` in request order and generate them as one batch."""
    targets: List[File] = []
    for name in request.file_to_generate:
        try:
            targets.append(registry.lookup_file(name))
        except NotFoundError as exc:
            raise ResolutionError(str(exc)) from exc
    return generator.generate(targets)


class Pipeline:
    """Runs a single plugin invocation against injected collaborators."""

    def __init__(
        self,
        *,
        store: OptionStore | None = None,
        registry: Registry | None = None,
        generator_factory: GeneratorFactory | None = None,
        config_path: Path | None = None,
        overrides: Mapping[str, str] | None = None,
        on_options: Callable[[PluginOptions], None] | None = None,
    ) -> None:
        self.store = store or OptionStore()
        self.registry = registry or Registry()
        self.generator_factory = generator_factory or SwaggerGenerator
        self.config_path = config_path
        self.overrides = dict(overrides or {})
        self.on_options = on_options

    @property
    def options(self) -> PluginOptions:
        return self.store.options

    def run(self, stream: BinaryIO) -> PipelineResult:
        """Process the request on ``stream`` and return what should happen next."""
        try:
            request = decode_request(stream)
        except DecodeError as exc:
            return TerminateFatally(reason=str(exc))

        logger.debug("Processing code generator request")
        try:
            files = self.process(request)
        except DOMAIN_ERRORS as exc:
            message = str(exc) or type(exc).__name__
            logger.error("%s", message)
            return EmitResponse(response=build_response(error=message))
        logger.debug("Processed code generator request: %d file(s)", len(files))
        return EmitResponse(response=build_response(files=files))

    def process(self, request: plugin_pb2.CodeGeneratorRequest) -> List[OutputFile]:
        self._apply_defaults()
        if request.HasField("parameter"):
            dispatch_parameter(request.parameter, self.store, self.registry)
        if self.on_options is not None:
            self.on_options(self.options)

        self.registry.set_prefix(self.options.import_prefix)
        self.registry.load(request)
        generator = self.generator_factory(self.registry, self.options)
        return invoke(request, self.registry, generator)

    def _apply_defaults(self) -> None:
        load_config(self.config_path, self.store)
        try:
            apply_assignments(self.store, self.overrides)
        except OptionError as exc:
            raise ConfigError(f"command line: {exc}") from exc


def emit(result: PipelineResult, stream: BinaryIO) -> int:
    """Write the response for ``result`` and return the process exit code."""
    if isinstance(result, TerminateFatally):
        logger.critical("%s", result.reason)
        return 1
    try:
        encode_response(result.response, stream)
    except EncodeError as exc:
        logger.critical("%s", exc)
        return 1
    return 0


def run_plugin(
    stream_in: BinaryIO,
    stream_out: BinaryIO,
    pipeline: Pipeline | None = None,
) -> int:
    """Run one invocation from ``stream_in`` to ``stream_out``; return the exit code."""
    return emit((pipeline or Pipeline()).run(stream_in), stream_out)


__all__ = [
    "DOMAIN_ERRORS",
    "EmitResponse",
    "Pipeline",
    "PipelineResult",
    "ResolutionError",
    "TerminateFatally",
    "emit",
    "invoke",
    "run_plugin",
]
