"""protoc plugin that renders Swagger 2.0 documents from gRPC service definitions."""

__version__ = "0.1.0"
