"""Registry of schema files, messages and enums built from a generation request."""

from __future__ import annotations

import posixpath
from typing import Dict, Iterable, Tuple

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from ..logging import get_logger
from .types import Enum, Field, File, Message, Method, Service


class LoadError(RuntimeError):
    """Raised when the request describes an inconsistent set of files."""


class NotFoundError(LookupError):
    """Raised when a file, message or enum is not registered."""


class Registry:
    """Holds every file from a request plus the package mapping table."""

    def __init__(self) -> None:
        self._files: Dict[str, File] = {}
        self._messages: Dict[str, Message] = {}
        self._enums: Dict[str, Enum] = {}
        self._package_map: Dict[str, str] = {}
        self._prefix = ""
        self.logger = get_logger("registry")

    def load(self, request: plugin_pb2.CodeGeneratorRequest) -> None:
        """Register all files in ``request`` and resolve services of the targets."""
        for proto in request.proto_file:
            self._load_file(proto)
        for name in request.file_to_generate:
            target = self._files.get(name)
            if target is None:
                raise LoadError(f"no such file: {name}")
            self._load_services(target)
        self.logger.debug(
            "Loaded %d files, %d messages, %d enums",
            len(self._files),
            len(self._messages),
            len(self._enums),
        )

    def add_package_mapping(self, proto_path: str, package: str) -> None:
        """Map a proto file path to a package; the last mapping for a path wins."""
        self._package_map[proto_path] = package

    def set_prefix(self, prefix: str) -> None:
        """Set the prefix joined onto package paths of files loaded afterwards."""
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def package_map(self) -> Dict[str, str]:
        return dict(self._package_map)

    def lookup_file(self, name: str) -> File:
        try:
            return self._files[name]
        except KeyError:
            raise NotFoundError(f"no such file given: {name}") from None

    def lookup_message(self, name: str) -> Message:
        key = name if name.startswith(".") else f".{name}"
        try:
            return self._messages[key]
        except KeyError:
            raise NotFoundError(f"no message found: {name}") from None

    def lookup_enum(self, name: str) -> Enum:
        key = name if name.startswith(".") else f".{name}"
        try:
            return self._enums[key]
        except KeyError:
            raise NotFoundError(f"no enum found: {name}") from None

    def _load_file(self, proto: descriptor_pb2.FileDescriptorProto) -> None:
        file = File(proto=proto, package_path=self._package_path(proto))
        self._register_messages(file, proto.message_type, ())
        self._register_enums(file, proto.enum_type, ())
        self._files[proto.name] = file

    def _register_messages(
        self,
        file: File,
        protos: Iterable[descriptor_pb2.DescriptorProto],
        outers: Tuple[str, ...],
    ) -> None:
        for proto in protos:
            message = Message(proto=proto, file=file, outers=outers)
            message.fields = [Field(proto=item, message=message) for item in proto.field]
            file.messages.append(message)
            self._messages[message.fqmn] = message

            nested = outers + (proto.name,)
            self._register_messages(file, proto.nested_type, nested)
            self._register_enums(file, proto.enum_type, nested)

    def _register_enums(
        self,
        file: File,
        protos: Iterable[descriptor_pb2.EnumDescriptorProto],
        outers: Tuple[str, ...],
    ) -> None:
        for proto in protos:
            enum = Enum(proto=proto, file=file, outers=outers)
            file.enums.append(enum)
            self._enums[enum.fqen] = enum

    def _load_services(self, file: File) -> None:
        if file.services:
            return
        for proto in file.proto.service:
            service = Service(proto=proto, file=file)
            for method_proto in proto.method:
                try:
                    request_type = self.lookup_message(method_proto.input_type)
                    response_type = self.lookup_message(method_proto.output_type)
                except NotFoundError as exc:
                    raise LoadError(
                        f"{file.name}: {proto.name}.{method_proto.name}: {exc}"
                    ) from exc
                service.methods.append(
                    Method(
                        proto=method_proto,
                        service=service,
                        request_type=request_type,
                        response_type=response_type,
                    )
                )
            file.services.append(service)

    def _package_path(self, proto: descriptor_pb2.FileDescriptorProto) -> str:
        mapped = self._package_map.get(proto.name)
        if mapped is not None:
            return self._join_prefix(mapped)
        go_package = proto.options.go_package.split(";", 1)[0]
        if "/" in go_package:
            return go_package
        return self._join_prefix(posixpath.dirname(proto.name) or ".")

    def _join_prefix(self, path: str) -> str:
        if not self._prefix:
            return path
        return posixpath.normpath(posixpath.join(self._prefix, path))


__all__ = ["LoadError", "NotFoundError", "Registry"]
