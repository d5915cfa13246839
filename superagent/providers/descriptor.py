"""
Model descriptors.

Descriptors come from an external discovery layer and are consumed for
naming only: the model service registers a provider under the
descriptor's name.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class ModelDescriptor:
    """
    A locally available model file.

    Attributes:
        name: Model identifier (file stem)
        path: Location of the weights
        format: Lower-cased file extension ("gguf", "safetensors", ...)
        size: Size in bytes
    """

    name: str
    path: Path
    format: str = ""
    size: int = 0

    @classmethod
    def from_path(cls, path: str | Path) -> ModelDescriptor:
        """
        Describe a model file.

        Example:
            ModelDescriptor.from_path("models/Qwen3-8B.GGUF")
            # name="Qwen3-8B", format="gguf"
        """
        path = Path(path)
        try:
            size = path.stat().st_size
        except OSError:
            size = 0
        return cls(
            name=path.stem or path.name,
            path=path,
            format=path.suffix.lstrip(".").lower(),
            size=size,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": str(self.path),
            "format": self.format,
            "size": self.size,
        }
