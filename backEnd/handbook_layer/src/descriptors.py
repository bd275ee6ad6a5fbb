"""
Handbook descriptor registry.

Descriptors are loaded once from a JSON file at startup and are
read-only afterwards. The file maps each faculty key to its name,
PDF path, page offset and department table:

    {
      "engineering": {
        "name": "工学部",
        "source_path": "binran_all_pdf/kougaku_2024.pdf",
        "page_offset": 6,
        "departments": {"mechanical": {"name": "機械工学科"}}
      }
    }

Relative `source_path` values are resolved against `base_dir`.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Optional

from pydantic import ValidationError

from .schemas.descriptor import Department, DocumentDescriptor

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "data" / "handbooks.json"


class DescriptorRegistry(Mapping):
    """Immutable lookup of handbook descriptors by document identifier."""

    def __init__(self, descriptors: dict[str, DocumentDescriptor]):
        self._descriptors = MappingProxyType(dict(descriptors))

    def __getitem__(self, document_id: str) -> DocumentDescriptor:
        return self._descriptors[document_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def department(
        self,
        document_id: str,
        department_id: str,
    ) -> Optional[Department]:
        """Look up a department, or None if the faculty or department is unknown."""
        descriptor = self.get(document_id)
        if descriptor is None:
            return None
        return descriptor.get_department(department_id)

    def to_catalog(self) -> list[dict]:
        """Faculty/department listing for dropdown menus."""
        return [
            {
                "id": descriptor.document_id,
                "name": descriptor.name,
                "departments": [
                    {"id": dept_id, "name": dept.name}
                    for dept_id, dept in descriptor.departments.items()
                ],
            }
            for descriptor in self._descriptors.values()
        ]


def parse_descriptors(
    raw: dict,
    base_dir: Optional[Path] = None,
) -> DescriptorRegistry:
    """
    Build a registry from an already-decoded config mapping.

    Args:
        raw: Mapping of document_id -> descriptor fields
        base_dir: Directory used to resolve relative source paths

    Returns:
        DescriptorRegistry

    Raises:
        ValueError: If the mapping is not an object or an entry is invalid
    """
    if not isinstance(raw, dict):
        raise ValueError("Handbook config must be a JSON object keyed by document id")

    descriptors: dict[str, DocumentDescriptor] = {}
    for document_id, fields in raw.items():
        try:
            descriptor = DocumentDescriptor.model_validate(
                {**fields, "document_id": document_id}
            )
        except (TypeError, ValidationError) as e:
            raise ValueError(f"Invalid handbook config for '{document_id}': {e}") from e

        if base_dir is not None and not descriptor.source_path.is_absolute():
            descriptor = descriptor.model_copy(
                update={"source_path": Path(base_dir) / descriptor.source_path}
            )
        descriptors[document_id] = descriptor

    return DescriptorRegistry(descriptors)


def load_descriptors(
    config_path: Optional[Path] = None,
    base_dir: Optional[Path] = None,
) -> DescriptorRegistry:
    """
    Load the descriptor registry from a JSON config file.

    Args:
        config_path: Path to the config file (packaged default if None)
        base_dir: Directory for relative PDF paths. Defaults to the config
            file's directory, or the working directory for the packaged config

    Returns:
        DescriptorRegistry
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
        base_dir = base_dir or Path.cwd()
    config_path = Path(config_path)

    with open(config_path, encoding="utf-8") as f:
        raw = json.load(f)

    registry = parse_descriptors(raw, base_dir=base_dir or config_path.parent)
    logger.info(f"Loaded {len(registry)} handbook descriptors from {config_path}")
    return registry
