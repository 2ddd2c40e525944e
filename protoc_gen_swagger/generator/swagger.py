"""Swagger 2.0 document generator driven by ``google.api.http`` annotations."""

from __future__ import annotations

import json
import posixpath
import re
from typing import Any, Dict, List, Optional, Sequence, Set

from google.api import annotations_pb2, http_pb2
from google.protobuf import descriptor_pb2

from ..config import PluginOptions
from ..descriptor import Enum, Field, File, Message, Method, NotFoundError, Registry
from ..logging import get_logger
from ..models import OutputFile
from .base import GenerationError, Generator
from .schema import WELL_KNOWN_TYPES, definition_name, definition_ref, scalar_schema

SWAGGER_SUFFIX = ".swagger.json"
_PATH_PARAM = re.compile(r"\{([^}=]+)(?:=[^}]*)?\}")
_SWAGGER_VERBS = {"get", "put", "post", "delete", "options", "head", "patch"}
_F = descriptor_pb2.FieldDescriptorProto


class SwaggerGenerator(Generator):
    """Renders targets into Swagger 2.0 JSON documents."""

    def __init__(self, registry: Registry, options: PluginOptions | None = None) -> None:
        self.registry = registry
        self.options = options or PluginOptions()
        self.logger = get_logger("generator.swagger")

    def generate(self, targets: Sequence[File]) -> List[OutputFile]:
        if not targets:
            return []
        if self.options.allow_merge:
            name = self.options.merge_file_name
            document = self._render(targets, title=name)
            self.logger.debug("Merged %d files into %s", len(targets), name)
            return [OutputFile(name=f"{name}{SWAGGER_SUFFIX}", content=_dump(document))]

        outputs: List[OutputFile] = []
        for target in targets:
            document = self._render([target], title=target.name)
            base, _ = posixpath.splitext(target.name)
            outputs.append(OutputFile(name=f"{base}{SWAGGER_SUFFIX}", content=_dump(document)))
            self.logger.debug("Rendered %s", target.name)
        return outputs

    def _render(self, files: Sequence[File], *, title: str) -> Dict[str, Any]:
        collector = _DefinitionCollector(self.registry)
        paths: Dict[str, Dict[str, Any]] = {}
        for file in files:
            for message in file.messages:
                collector.add_message(message)
            for enum in file.enums:
                collector.add_enum(enum)
            for service in file.services:
                for method in service.methods:
                    for rule in _http_rules(method):
                        self._add_operation(paths, method, rule, collector)

        return {
            "swagger": "2.0",
            "info": {"title": title, "version": "version not set"},
            "schemes": ["http", "https"],
            "consumes": ["application/json"],
            "produces": ["application/json"],
            "paths": paths,
            "definitions": collector.definitions(),
        }

    def _add_operation(
        self,
        paths: Dict[str, Dict[str, Any]],
        method: Method,
        rule: http_pb2.HttpRule,
        collector: "_DefinitionCollector",
    ) -> None:
        verb, template = _verb_and_path(method, rule)
        if verb == "delete" and rule.body and not self.options.allow_delete_body:
            raise GenerationError(
                f"{_method_name(method)}: needs request body even though http method is DELETE"
            )

        parameters: List[Dict[str, Any]] = []
        for param in _PATH_PARAM.findall(template):
            field = self._resolve_field_path(method.request_type, param, method)
            parameter: Dict[str, Any] = {"name": param, "in": "path", "required": True}
            parameter.update(self._path_param_schema(field, method))
            parameters.append(parameter)

        if rule.body:
            parameters.append(
                {
                    "name": "body",
                    "in": "body",
                    "required": True,
                    "schema": self._body_schema(method, rule.body, collector),
                }
            )

        operation: Dict[str, Any] = {
            "operationId": method.name,
            "responses": {
                "200": {"description": "", "schema": collector.message_schema(method.response_type)}
            },
        }
        if parameters:
            operation["parameters"] = parameters
        operation["tags"] = [method.service.name]

        path = _PATH_PARAM.sub(lambda match: "{" + match.group(1) + "}", template)
        operations = paths.setdefault(path, {})
        if verb in operations:
            raise GenerationError(f"{_method_name(method)}: duplicate operation {verb.upper()} {path}")
        operations[verb] = operation

    def _resolve_field_path(self, message: Message, path: str, method: Method) -> Field:
        current = message
        parts = path.split(".")
        for index, part in enumerate(parts):
            field = current.lookup_field(part)
            if field is None:
                raise GenerationError(
                    f"{_method_name(method)}: no field {path!r} found in {message.fqmn}"
                )
            if index == len(parts) - 1:
                return field
            if field.proto.type != _F.TYPE_MESSAGE:
                raise GenerationError(
                    f"{_method_name(method)}: {part!r} in {path!r} is not a message field"
                )
            current = self._lookup_message(field.proto.type_name, method)
        raise GenerationError(f"{_method_name(method)}: empty field path")

    def _path_param_schema(self, field: Field, method: Method) -> Dict[str, Any]:
        if field.is_repeated:
            raise GenerationError(
                f"{_method_name(method)}: repeated field {field.name!r} cannot be a path parameter"
            )
        if field.proto.type == _F.TYPE_ENUM:
            return {"type": "string"}
        schema = scalar_schema(field.proto.type)
        if schema is None:
            schema = WELL_KNOWN_TYPES.get(field.proto.type_name)
        if schema is None or schema.get("type") == "object":
            raise GenerationError(
                f"{_method_name(method)}: field {field.name!r} cannot be a path parameter"
            )
        return dict(schema)

    def _body_schema(
        self, method: Method, body: str, collector: "_DefinitionCollector"
    ) -> Dict[str, Any]:
        if body == "*":
            return collector.message_schema(method.request_type)
        field = self._resolve_field_path(method.request_type, body, method)
        try:
            return collector.field_schema(field)
        except NotFoundError as exc:
            raise GenerationError(f"{_method_name(method)}: {exc}") from exc

    def _lookup_message(self, type_name: str, method: Method) -> Message:
        try:
            return self.registry.lookup_message(type_name)
        except NotFoundError as exc:
            raise GenerationError(f"{_method_name(method)}: {exc}") from exc


class _DefinitionCollector:
    """Accumulates definitions for messages and enums, following references."""

    def __init__(self, registry: Registry) -> None:
        self.registry = registry
        self._definitions: Dict[str, Dict[str, Any]] = {}
        self._visited: Set[str] = set()

    def definitions(self) -> Dict[str, Dict[str, Any]]:
        return dict(sorted(self._definitions.items()))

    def add_enum(self, enum: Enum) -> None:
        if enum.fqen in self._visited:
            return
        self._visited.add(enum.fqen)
        names = enum.value_names
        definition: Dict[str, Any] = {"type": "string", "enum": names}
        if names:
            definition["default"] = names[0]
        self._definitions[definition_name(enum.fqen)] = definition

    def message_schema(self, message: Message) -> Dict[str, Any]:
        if message.fqmn in WELL_KNOWN_TYPES:
            return dict(WELL_KNOWN_TYPES[message.fqmn])
        self.add_message(message)
        return definition_ref(message.fqmn)

    def add_message(self, message: Message) -> None:
        if message.fqmn in WELL_KNOWN_TYPES or message.is_map_entry:
            return
        if message.fqmn in self._visited:
            return
        self._visited.add(message.fqmn)
        properties: Dict[str, Any] = {}
        # Register before walking fields so recursive messages terminate.
        self._definitions[definition_name(message.fqmn)] = {
            "type": "object",
            "properties": properties,
        }
        for field in message.fields:
            try:
                properties[field.name] = self.field_schema(field)
            except NotFoundError as exc:
                raise GenerationError(f"{message.fqmn}.{field.name}: {exc}") from exc

    def field_schema(self, field: Field) -> Dict[str, Any]:
        proto = field.proto
        if proto.type == _F.TYPE_MESSAGE:
            if proto.type_name in WELL_KNOWN_TYPES:
                item = dict(WELL_KNOWN_TYPES[proto.type_name])
            else:
                message = self.registry.lookup_message(proto.type_name)
                if message.is_map_entry:
                    return self._map_schema(message)
                self.add_message(message)
                item = definition_ref(message.fqmn)
        elif proto.type == _F.TYPE_ENUM:
            self.add_enum(self.registry.lookup_enum(proto.type_name))
            item = definition_ref(proto.type_name)
        else:
            schema = scalar_schema(proto.type)
            if schema is None:
                raise GenerationError(
                    f"{field.message.fqmn}.{field.name}: unsupported field type {proto.type}"
                )
            item = schema

        if field.is_repeated:
            return {"type": "array", "items": item}
        return item

    def _map_schema(self, entry: Message) -> Dict[str, Any]:
        value = entry.lookup_field("value")
        if value is None:
            raise GenerationError(f"{entry.fqmn}: map entry without a value field")
        return {"type": "object", "additionalProperties": self.field_schema(value)}


def _http_rules(method: Method) -> List[http_pb2.HttpRule]:
    options = method.proto.options
    if not options.HasExtension(annotations_pb2.http):
        return []
    rule = options.Extensions[annotations_pb2.http]
    return [rule, *rule.additional_bindings]


def _verb_and_path(method: Method, rule: http_pb2.HttpRule) -> tuple[str, str]:
    pattern: Optional[str] = rule.WhichOneof("pattern")
    if pattern is None:
        raise GenerationError(f"{_method_name(method)}: http rule without a pattern")
    if pattern == "custom":
        verb, template = rule.custom.kind.lower(), rule.custom.path
    else:
        verb, template = pattern, getattr(rule, pattern)
    if verb not in _SWAGGER_VERBS:
        raise GenerationError(f"{_method_name(method)}: unsupported http method {verb!r}")
    if not template.startswith("/"):
        raise GenerationError(f"{_method_name(method)}: path template {template!r} must start with '/'")
    return verb, template


def _method_name(method: Method) -> str:
    return f"{method.service.file.name}: {method.service.name}.{method.name}"


def _dump(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2) + "\n"


__all__ = ["SWAGGER_SUFFIX", "SwaggerGenerator"]
