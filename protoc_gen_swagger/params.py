"""Parsing and dispatch of the request parameter string."""

from __future__ import annotations

from typing import Iterable, List, Protocol

from .config import OptionError, OptionStore
from .logging import get_logger
from .models import Directive, OptionAssignment, PackageMapping

TOKEN_SEPARATOR = ","
VALUE_SEPARATOR = "="
PACKAGE_MAPPING_MARKER = "M"

logger = get_logger("params")


class DispatchError(RuntimeError):
    """Raised when a directive cannot be applied."""


class PackageMapper(Protocol):
    def add_package_mapping(self, proto_path: str, package: str) -> None:
        ...


def parse_parameter(parameter: str) -> List[Directive]:
    """Split a ``protoc`` parameter string into directives, preserving order.

    ``a=b,Mfoo.proto=pkg,flag`` yields ``OptionAssignment("a", "b")``,
    ``PackageMapping("foo.proto", "pkg")`` and ``OptionAssignment("flag", "")``.
    An absent or empty string yields no directives.
    """
    if not parameter:
        return []
    directives: List[Directive] = []
    for token in parameter.split(TOKEN_SEPARATOR):
        name, separator, value = token.partition(VALUE_SEPARATOR)
        if not separator:
            directives.append(OptionAssignment(name=name))
            continue
        if name.startswith(PACKAGE_MAPPING_MARKER):
            directives.append(
                PackageMapping(proto_path=name[len(PACKAGE_MAPPING_MARKER):], package=value)
            )
            continue
        directives.append(OptionAssignment(name=name, value=value))
    return directives


def format_directives(directives: Iterable[Directive]) -> str:
    """Render directives back into a parameter string accepted by :func:`parse_parameter`."""
    tokens: List[str] = []
    for directive in directives:
        if isinstance(directive, PackageMapping):
            tokens.append(f"{PACKAGE_MAPPING_MARKER}{directive.proto_path}{VALUE_SEPARATOR}{directive.package}")
            continue
        if not directive.value:
            tokens.append(directive.name)
            continue
        if directive.name.startswith(PACKAGE_MAPPING_MARKER):
            raise ValueError(
                f"option {directive.name!r} with a value would be read back as a package mapping"
            )
        tokens.append(f"{directive.name}{VALUE_SEPARATOR}{directive.value}")
    return TOKEN_SEPARATOR.join(tokens)


def dispatch(
    directives: Iterable[Directive],
    store: OptionStore,
    registry: PackageMapper,
) -> None:
    """Apply directives in order, stopping at the first one that fails."""
    for directive in directives:
        if isinstance(directive, PackageMapping):
            logger.debug("Mapping %s to package %s", directive.proto_path, directive.package)
            registry.add_package_mapping(directive.proto_path, directive.package)
            continue
        try:
            store.set(directive.name, directive.value)
        except OptionError as exc:
            raise DispatchError(f"Cannot set flag {_describe(directive)}: {exc}") from exc
        logger.debug("Set option %s=%r", directive.name, directive.value)


def dispatch_parameter(parameter: str, store: OptionStore, registry: PackageMapper) -> List[Directive]:
    """Parse and apply a parameter string; return the directives applied."""
    directives = parse_parameter(parameter)
    dispatch(directives, store, registry)
    return directives


def _describe(directive: OptionAssignment) -> str:
    if directive.value:
        return f"{directive.name}{VALUE_SEPARATOR}{directive.value}"
    return directive.name


__all__ = [
    "DispatchError",
    "PACKAGE_MAPPING_MARKER",
    "dispatch",
    "dispatch_parameter",
    "format_directives",
    "parse_parameter",
]
