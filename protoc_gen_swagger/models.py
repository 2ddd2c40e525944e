"""Core data models shared across plugin components."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class OptionAssignment:
    """``name=value`` directive. An empty value marks a presence-only flag."""

    name: str
    value: str = ""


@dataclass(frozen=True)
class PackageMapping:
    """``M<proto path>=<package>`` directive."""

    proto_path: str
    package: str


Directive = Union[OptionAssignment, PackageMapping]


@dataclass
class OutputFile:
    """A generated artifact returned to the host compiler."""

    name: str
    content: str
