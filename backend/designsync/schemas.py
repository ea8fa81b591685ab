"""Pydantic schemas for operation arguments.

Arguments arrive as camelCase dicts (``{"fileId": ..., "componentId": ...}``);
snake_case keys are accepted too. Unknown keys are ignored.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import StatusValue


class _Args(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ComponentFilter(_Args):
    """Filter for component listings."""
    type: Optional[Literal["COMPONENT", "COMPONENT_SET"]] = None
    name: Optional[str] = Field(None, description="Case-insensitive regex on component name")
    published: Optional[bool] = None


class GetComponentArgs(_Args):
    file_id: str = Field(..., min_length=1)
    component_id: str = Field(..., min_length=1)
    include_variants: bool = True
    include_instances: bool = False


class ListComponentsArgs(_Args):
    file_id: str = Field(..., min_length=1)
    filter: Optional[ComponentFilter] = None


class GetDesignTokensArgs(_Args):
    file_id: str = Field(..., min_length=1)
    token_types: List[Literal["colors", "typography", "spacing", "effects", "variables", "all"]] = (
        Field(default_factory=lambda: ["all"])
    )
    format: Literal["standard", "css-variables"] = "standard"


class GetComponentSpecificationArgs(_Args):
    file_id: str = Field(..., min_length=1)
    component_id: str = Field(..., min_length=1)
    include_accessibility: bool = True
    include_interactions: bool = True


class CheckComponentChangesArgs(_Args):
    file_id: str = Field(..., min_length=1)
    last_sync_timestamp: datetime
    component_ids: Optional[List[str]] = None


class SetWorkingFileArgs(_Args):
    url: str = Field(..., min_length=1, description="Figma file or design URL")

    @field_validator("url")
    @classmethod
    def strip_url(cls, url: str) -> str:
        url = url.strip()
        if not url:
            raise ValueError("URL cannot be empty")
        return url


class GetImplementationQueueArgs(_Args):
    filter: Optional[ComponentFilter] = None


class GetComponentForImplementationArgs(_Args):
    component_id: str = Field(..., min_length=1)
    include_usage_examples: bool = True
    target_framework: Literal["react", "angular", "vue", "svelte", "generic"] = "generic"


class UpdateComponentStatusArgs(_Args):
    component_id: str = Field(..., min_length=1)
    component_name: str = Field(..., min_length=1)
    status: StatusValue
    notes: Optional[str] = None
    framework: Optional[str] = None
