"""Base classes for output generators."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..descriptor import File
from ..models import OutputFile


class GenerationError(RuntimeError):
    """Raised when targets cannot be rendered."""


class Generator(ABC):
    """Contract for generators that render resolved files into output files."""

    @abstractmethod
    def generate(self, targets: Sequence[File]) -> List[OutputFile]:
        """Render every target in order; fail as a whole on the first error."""
