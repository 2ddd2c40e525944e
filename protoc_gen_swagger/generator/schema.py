"""Mapping of protobuf field types onto Swagger 2.0 schema objects."""

from __future__ import annotations

from typing import Dict, Tuple

from google.protobuf import descriptor_pb2

_F = descriptor_pb2.FieldDescriptorProto

# 64-bit integers are strings in the protobuf JSON mapping.
SCALAR_TYPES: Dict[int, Tuple[str, str]] = {
    _F.TYPE_DOUBLE: ("number", "double"),
    _F.TYPE_FLOAT: ("number", "float"),
    _F.TYPE_INT64: ("string", "int64"),
    _F.TYPE_UINT64: ("string", "uint64"),
    _F.TYPE_INT32: ("integer", "int32"),
    _F.TYPE_FIXED64: ("string", "uint64"),
    _F.TYPE_FIXED32: ("integer", "int64"),
    _F.TYPE_BOOL: ("boolean", "boolean"),
    _F.TYPE_STRING: ("string", ""),
    _F.TYPE_BYTES: ("string", "byte"),
    _F.TYPE_UINT32: ("integer", "int64"),
    _F.TYPE_SFIXED32: ("integer", "int32"),
    _F.TYPE_SFIXED64: ("string", "int64"),
    _F.TYPE_SINT32: ("integer", "int32"),
    _F.TYPE_SINT64: ("string", "int64"),
}

WELL_KNOWN_TYPES: Dict[str, Dict[str, str]] = {
    ".google.protobuf.Timestamp": {"type": "string", "format": "date-time"},
    ".google.protobuf.Duration": {"type": "string"},
    ".google.protobuf.Empty": {"type": "object"},
    ".google.protobuf.StringValue": {"type": "string"},
    ".google.protobuf.BytesValue": {"type": "string", "format": "byte"},
    ".google.protobuf.BoolValue": {"type": "boolean", "format": "boolean"},
    ".google.protobuf.Int32Value": {"type": "integer", "format": "int32"},
    ".google.protobuf.UInt32Value": {"type": "integer", "format": "int64"},
    ".google.protobuf.Int64Value": {"type": "string", "format": "int64"},
    ".google.protobuf.UInt64Value": {"type": "string", "format": "uint64"},
    ".google.protobuf.FloatValue": {"type": "number", "format": "float"},
    ".google.protobuf.DoubleValue": {"type": "number", "format": "double"},
}


def scalar_schema(field_type: int) -> Dict[str, str] | None:
    """Return ``{"type", "format"}`` for a scalar field type, or None."""
    mapped = SCALAR_TYPES.get(field_type)
    if mapped is None:
        return None
    swagger_type, swagger_format = mapped
    schema = {"type": swagger_type}
    if swagger_format:
        schema["format"] = swagger_format
    return schema


def definition_name(fully_qualified: str) -> str:
    return fully_qualified.lstrip(".")


def definition_ref(fully_qualified: str) -> Dict[str, str]:
    return {"$ref": f"#/definitions/{definition_name(fully_qualified)}"}


__all__ = [
    "SCALAR_TYPES",
    "WELL_KNOWN_TYPES",
    "definition_name",
    "definition_ref",
    "scalar_schema",
]
