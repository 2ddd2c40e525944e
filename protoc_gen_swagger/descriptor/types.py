"""Wrappers around protobuf descriptors that keep their enclosing context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from google.protobuf import descriptor_pb2


def _qualify(package: str, outers: Tuple[str, ...], name: str) -> str:
    parts = [part for part in (package, *outers, name) if part]
    return "." + ".".join(parts)


@dataclass(eq=False)
class Field:
    """A message field."""

    proto: descriptor_pb2.FieldDescriptorProto
    message: "Message" = field(repr=False)

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def is_repeated(self) -> bool:
        return self.proto.label == descriptor_pb2.FieldDescriptorProto.LABEL_REPEATED


@dataclass(eq=False)
class Message:
    """A message type, possibly nested inside other messages."""

    proto: descriptor_pb2.DescriptorProto
    file: "File" = field(repr=False)
    outers: Tuple[str, ...] = ()
    fields: List[Field] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def fqmn(self) -> str:
        """Fully-qualified message name, e.g. ``.example.Outer.Inner``."""
        return _qualify(self.file.package, self.outers, self.proto.name)

    @property
    def is_map_entry(self) -> bool:
        return self.proto.options.map_entry

    def lookup_field(self, name: str) -> Optional[Field]:
        for item in self.fields:
            if item.name == name:
                return item
        return None


@dataclass(eq=False)
class Enum:
    """An enum type, possibly nested inside messages."""

    proto: descriptor_pb2.EnumDescriptorProto
    file: "File" = field(repr=False)
    outers: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def fqen(self) -> str:
        return _qualify(self.file.package, self.outers, self.proto.name)

    @property
    def value_names(self) -> List[str]:
        return [value.name for value in self.proto.value]


@dataclass(eq=False)
class Method:
    """An RPC method with its request and response messages resolved."""

    proto: descriptor_pb2.MethodDescriptorProto
    service: "Service" = field(repr=False)
    request_type: Message = field(repr=False)
    response_type: Message = field(repr=False)

    @property
    def name(self) -> str:
        return self.proto.name


@dataclass(eq=False)
class Service:
    proto: descriptor_pb2.ServiceDescriptorProto
    file: "File" = field(repr=False)
    methods: List[Method] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.proto.name


@dataclass(eq=False)
class File:
    """A schema file registered from a generation request."""

    proto: descriptor_pb2.FileDescriptorProto
    package_path: str = ""
    messages: List[Message] = field(default_factory=list)
    enums: List[Enum] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def package(self) -> str:
        return self.proto.package


__all__ = ["Enum", "Field", "File", "Message", "Method", "Service"]
