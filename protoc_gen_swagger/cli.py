"""CLI entrypoint for the protoc-gen-swagger plugin.

protoc locates the plugin by name (``--swagger_out`` runs ``protoc-gen-swagger``
from ``$PATH``), writes a serialized request to its stdin and reads the
response from its stdout. Options after ``--swagger_out=`` and before ``:``
arrive in the request parameter, e.g.::

    protoc --swagger_out=logtostderr=true,Mfoo.proto=example/foo:. foo.proto
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import BinaryIO, Dict

from .config import ConfigError, PluginOptions, resolve_config_path
from .logging import configure_logging, get_logger
from .pipeline import Pipeline, TerminateFatally, emit

STDIN = "stdin"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protoc-gen-swagger",
        description="protoc plugin that renders Swagger 2.0 documents from annotated services.",
    )
    parser.add_argument(
        "--import_prefix",
        default=None,
        help="Prefix to be added to package paths for imported proto files.",
    )
    parser.add_argument(
        "--file",
        default=STDIN,
        help="Where to load the code generator request from (defaults to stdin).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .protoc-gen-swagger.yml file with option defaults.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log debug output to stderr.",
    )
    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if args.import_prefix is not None:
        overrides["import_prefix"] = args.import_prefix
    if args.file != STDIN:
        overrides["file"] = args.file
    if args.verbose:
        overrides["logtostderr"] = "true"
        overrides["v"] = "1"
    return overrides


def _reconfigure_logging(options: PluginOptions) -> None:
    log_file = Path(options.log_file) if options.log_file else None
    try:
        configure_logging(verbosity=options.v, to_stderr=options.logtostderr, log_file=log_file)
    except OSError as exc:
        raise ConfigError(f"cannot open log file {options.log_file}: {exc}") from exc


def _run(pipeline: Pipeline, source: str, stdout: BinaryIO) -> int:
    if source == STDIN:
        return emit(pipeline.run(sys.stdin.buffer), stdout)
    try:
        with open(source, "rb") as stream:
            result = pipeline.run(stream)
    except OSError as exc:
        result = TerminateFatally(reason=f"failed to open {source}: {exc}")
    return emit(result, stdout)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbosity=1 if args.verbose else 0, to_stderr=bool(args.verbose))
    logger = get_logger("cli")

    pipeline = Pipeline(
        config_path=resolve_config_path(args.config),
        overrides=_overrides(args),
        on_options=_reconfigure_logging,
    )
    exit_code = _run(pipeline, args.file, sys.stdout.buffer)
    logger.debug("Exiting with status %d", exit_code)
    return exit_code


def run() -> None:
    """Console-script wrapper around :func:`main`."""
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
