"""
Handbook descriptor schemas.

A descriptor maps a faculty key to its display name, the PDF it is
read from, and the departments that can be selected for it.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Department(BaseModel):
    """A department (学科/専修/専攻) inside a faculty."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name, e.g. 機械工学科")


class DocumentDescriptor(BaseModel):
    """Static configuration for one handbook."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "document_id": "engineering",
                "name": "工学部",
                "source_path": "binran_all_pdf/kougaku_2024.pdf",
                "page_offset": 6,
                "departments": {"mechanical": {"name": "機械工学科"}},
            }
        },
    )

    document_id: str = Field(..., description="Faculty key, e.g. engineering")
    name: str = Field(..., description="Faculty display name, e.g. 工学部")
    source_path: Path = Field(..., description="Location of the handbook PDF")
    departments: dict[str, Department] = Field(default_factory=dict)
    page_offset: int = Field(
        default=1,
        ge=1,
        description="Physical PDF page on which printed page 1 starts",
    )

    def get_department(self, department_id: str) -> Optional[Department]:
        return self.departments.get(department_id)
