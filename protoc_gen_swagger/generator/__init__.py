"""Output generators and their shared contract."""

from .base import GenerationError, Generator
from .swagger import SWAGGER_SUFFIX, SwaggerGenerator

__all__ = ["GenerationError", "Generator", "SWAGGER_SUFFIX", "SwaggerGenerator"]
