"""Data models for design documents and extraction results.

Two families of pydantic models live here:

Raw design data (as returned by the Figma REST API)
    DesignDocument / DesignNode form the node tree. Fills and strokes are a
    closed ``Paint`` union and effects a closed ``Effect`` union, both
    discriminated on ``type``. Paint/effect kinds outside those unions are
    dropped at validation time so downstream code only ever dispatches on
    known variants.

Extraction results
    ComponentRecord, ComponentSpecification, DesignToken, TokenCollection,
    ComponentStatus, WorkingFileSession and friends. Field names are
    snake_case; ``model_dump(by_alias=True)`` produces the camelCase JSON
    shape consumers expect.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _FigmaModel(BaseModel):
    """Base for payloads coming from the Figma API (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class _Record(BaseModel):
    """Base for extraction results."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =====================================================================
# Primitives
# =====================================================================


class RGBA(_FigmaModel):
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 1.0


class Vector(_FigmaModel):
    x: float = 0.0
    y: float = 0.0


class Rectangle(_FigmaModel):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class Measure(_FigmaModel):
    """A value with a unit, e.g. line height ``{"value": 150, "unit": "PERCENT"}``."""

    value: float = 0.0
    unit: str = "PIXELS"


# =====================================================================
# Paints
# =====================================================================


class ColorStop(_FigmaModel):
    position: float = 0.0
    color: RGBA = Field(default_factory=RGBA)


class SolidPaint(_FigmaModel):
    type: Literal["SOLID"]
    visible: bool = True
    opacity: float = 1.0
    color: Optional[RGBA] = None


class GradientPaint(_FigmaModel):
    type: Literal[
        "GRADIENT_LINEAR", "GRADIENT_RADIAL", "GRADIENT_ANGULAR", "GRADIENT_DIAMOND"
    ]
    visible: bool = True
    opacity: float = 1.0
    gradient_stops: List[ColorStop] = Field(default_factory=list)
    gradient_handle_positions: List[Vector] = Field(default_factory=list)


class ImagePaint(_FigmaModel):
    type: Literal["IMAGE"]
    visible: bool = True
    opacity: float = 1.0
    scale_mode: Optional[str] = None
    image_ref: Optional[str] = None


Paint = Annotated[
    Union[SolidPaint, GradientPaint, ImagePaint],
    Field(discriminator="type"),
]

PAINT_TYPES = frozenset({
    "SOLID", "GRADIENT_LINEAR", "GRADIENT_RADIAL", "GRADIENT_ANGULAR",
    "GRADIENT_DIAMOND", "IMAGE",
})


# =====================================================================
# Effects
# =====================================================================


class _ShadowBase(_FigmaModel):
    visible: bool = True
    radius: Optional[float] = None
    color: Optional[RGBA] = None
    offset: Optional[Vector] = None
    spread: float = 0.0


class DropShadow(_ShadowBase):
    type: Literal["DROP_SHADOW"]


class InnerShadow(_ShadowBase):
    type: Literal["INNER_SHADOW"]


class LayerBlur(_FigmaModel):
    type: Literal["LAYER_BLUR"]
    visible: bool = True
    radius: Optional[float] = None


class BackgroundBlur(_FigmaModel):
    type: Literal["BACKGROUND_BLUR"]
    visible: bool = True
    radius: Optional[float] = None


Effect = Annotated[
    Union[DropShadow, InnerShadow, LayerBlur, BackgroundBlur],
    Field(discriminator="type"),
]

EFFECT_TYPES = frozenset({"DROP_SHADOW", "INNER_SHADOW", "LAYER_BLUR", "BACKGROUND_BLUR"})


def _drop_unknown(value: Any, known: frozenset) -> Any:
    if not isinstance(value, list):
        return value
    return [
        item for item in value
        if not isinstance(item, dict) or item.get("type") in known
    ]


# =====================================================================
# Nodes
# =====================================================================


class TypeStyle(_FigmaModel):
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    font_weight: Optional[float] = None
    line_height_px: Optional[float] = None
    line_height: Optional[Measure] = None
    letter_spacing: Optional[Union[float, Measure]] = None


class ComponentPropertyDefinition(_FigmaModel):
    type: str
    default_value: Any = None
    variant_options: Optional[List[str]] = None


class DesignNode(_FigmaModel):
    id: str
    name: str = ""
    type: str = ""
    visible: bool = True
    opacity: Optional[float] = None
    children: List[DesignNode] = Field(default_factory=list)
    bounding_box: Optional[Rectangle] = Field(default=None, alias="absoluteBoundingBox")
    fills: List[Paint] = Field(default_factory=list)
    strokes: List[Paint] = Field(default_factory=list)
    stroke_weight: Optional[float] = None
    corner_radius: Optional[float] = None
    effects: List[Effect] = Field(default_factory=list)
    characters: Optional[str] = None
    style: Optional[TypeStyle] = None
    property_definitions: Optional[Dict[str, ComponentPropertyDefinition]] = Field(
        default=None, alias="componentPropertyDefinitions"
    )
    padding_top: Optional[float] = None
    padding_right: Optional[float] = None
    padding_bottom: Optional[float] = None
    padding_left: Optional[float] = None
    item_spacing: Optional[float] = None

    @field_validator("fills", "strokes", mode="before")
    @classmethod
    def drop_unknown_paints(cls, value: Any) -> Any:
        return _drop_unknown(value, PAINT_TYPES)

    @field_validator("effects", mode="before")
    @classmethod
    def drop_unknown_effects(cls, value: Any) -> Any:
        return _drop_unknown(value, EFFECT_TYPES)


class ComponentMetadata(_FigmaModel):
    """Entry of the file-level ``components`` / ``componentSets`` maps."""

    key: str = ""
    name: str = ""
    description: str = ""
    component_set_id: Optional[str] = None


class DesignDocument(_FigmaModel):
    """Response of GET /v1/files/:key."""

    name: str = ""
    last_modified: datetime
    version: Optional[str] = None
    thumbnail_url: Optional[str] = None
    document: DesignNode
    components: Dict[str, ComponentMetadata] = Field(default_factory=dict)
    component_sets: Dict[str, ComponentMetadata] = Field(default_factory=dict)


# =====================================================================
# Styles & variables
# =====================================================================


class StyleRecord(BaseModel):
    """A published style. The styles endpoint speaks snake_case."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    key: str = ""
    name: str = ""
    description: str = ""
    style_type: str = Field(
        default="", validation_alias=AliasChoices("style_type", "styleType")
    )
    fills: List[Paint] = Field(default_factory=list)
    effects: List[Effect] = Field(default_factory=list)
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    font_weight: Optional[float] = None
    line_height: Optional[Measure] = None
    letter_spacing: Optional[Measure] = None

    @field_validator("fills", mode="before")
    @classmethod
    def drop_unknown_paints(cls, value: Any) -> Any:
        return _drop_unknown(value, PAINT_TYPES)

    @field_validator("effects", mode="before")
    @classmethod
    def drop_unknown_effects(cls, value: Any) -> Any:
        return _drop_unknown(value, EFFECT_TYPES)


class VariableMode(_FigmaModel):
    mode_id: str
    name: str = ""


class VariableCollection(_FigmaModel):
    id: str
    name: str = ""
    default_mode_id: Optional[str] = None
    modes: List[VariableMode] = Field(default_factory=list)


class Variable(_FigmaModel):
    id: str
    name: str = ""
    description: str = ""
    resolved_type: str = ""
    variable_collection_id: Optional[str] = None
    values_by_mode: Dict[str, Any] = Field(default_factory=dict)


# =====================================================================
# Component records
# =====================================================================


class Dimensions(_Record):
    width: float = 0.0
    height: float = 0.0
    min_width: Optional[float] = None
    max_width: Optional[float] = None


class ColorProperty(_Record):
    property: str
    value: str
    type: str
    token: Optional[str] = None


class TypographyProperty(_Record):
    property: str
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    font_weight: Optional[float] = None
    line_height: Optional[float] = None
    token: Optional[str] = None


class SpacingProperty(_Record):
    property: str
    top: Optional[float] = None
    right: Optional[float] = None
    bottom: Optional[float] = None
    left: Optional[float] = None
    token: Optional[str] = None


class EffectProperty(_Record):
    type: str
    color: Optional[str] = None
    offset: Optional[Vector] = None
    radius: Optional[float] = None
    spread: float = 0.0
    visible: bool = True


class ComponentProperties(_Record):
    dimensions: Dimensions = Field(default_factory=Dimensions)
    colors: List[ColorProperty] = Field(default_factory=list)
    typography: List[TypographyProperty] = Field(default_factory=list)
    spacing: List[SpacingProperty] = Field(default_factory=list)
    effects: List[EffectProperty] = Field(default_factory=list)


class Variant(_Record):
    id: str
    name: str
    properties: Dict[str, str] = Field(default_factory=dict)
    overrides: Dict[str, Any] = Field(default_factory=dict)


class PropDefinition(_Record):
    name: str
    type: str
    required: bool = False
    default: Any = None
    description: Optional[str] = None
    values: Optional[List[str]] = None


class EventDefinition(_Record):
    name: str
    type: str
    description: Optional[str] = None


class SlotDefinition(_Record):
    name: str
    description: Optional[str] = None
    required: bool = False


class ComponentInterface(_Record):
    props: List[PropDefinition] = Field(default_factory=list)
    events: List[EventDefinition] = Field(default_factory=list)
    slots: List[SlotDefinition] = Field(default_factory=list)


class ComponentRecord(_Record):
    id: str
    name: str
    kind: str
    description: Optional[str] = None
    properties: ComponentProperties = Field(default_factory=ComponentProperties)
    variants: Optional[List[Variant]] = None
    component_interface: ComponentInterface = Field(default_factory=ComponentInterface)


class StateCapture(_Record):
    """Visual data of a layer recognised as an interaction state."""

    layer_name: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    colors: List[ColorProperty] = Field(default_factory=list)
    effects: List[EffectProperty] = Field(default_factory=list)
    visibility: bool = True
    child_states: Optional[Dict[str, Dict[str, Any]]] = None


class Styling(_Record):
    base_styles: Dict[str, Any] = Field(default_factory=dict)
    variants: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    states: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    state_info: Dict[str, StateCapture] = Field(default_factory=dict)


class KeyBinding(_Record):
    key: str
    action: str


class Accessibility(_Record):
    role: Optional[str] = None
    aria_label: Optional[str] = None
    keyboard_navigation: List[KeyBinding] = Field(default_factory=list)


class UsageExample(_Record):
    title: str
    code: str


class Usage(_Record):
    guidelines: List[str] = Field(default_factory=list)
    examples: List[UsageExample] = Field(default_factory=list)
    do_not: List[str] = Field(default_factory=list)


class ComponentSpecification(_Record):
    component: ComponentRecord
    styling: Styling = Field(default_factory=Styling)
    accessibility: Optional[Accessibility] = None
    # state name -> StateCapture, or {} for a standard state with no layer
    interactions: Optional[Dict[str, Any]] = None
    usage: Optional[Usage] = None


class ComponentListItem(_Record):
    id: str
    name: str
    kind: str
    description: Optional[str] = None
    variant_count: Optional[int] = None
    last_modified: datetime
    published: bool = True
    thumbnail: Optional[str] = None


class ComponentListing(_Record):
    components: List[ComponentListItem] = Field(default_factory=list)
    total_count: int = 0
    has_more: bool = False


class ComponentChange(_Record):
    id: str
    name: str
    change_type: Literal["modified", "new", "deleted"]
    last_modified: datetime
    changes: List[str] = Field(default_factory=list)


class ChangeSet(_Record):
    has_changes: bool = False
    changed_components: List[ComponentChange] = Field(default_factory=list)
    new_components: List[ComponentListItem] = Field(default_factory=list)
    deleted_components: List[str] = Field(default_factory=list)


# =====================================================================
# Design tokens
# =====================================================================

TokenType = Literal["color", "typography", "spacing", "effect", "content", "boolean", "unknown"]


class DesignToken(_Record):
    name: str
    value: Any
    type: TokenType
    description: Optional[str] = None
    category: Optional[str] = None
    usage: Optional[List[str]] = None
    collection_name: Optional[str] = None
    variable_id: Optional[str] = None
    modes: Optional[Dict[str, Any]] = None


class TokenMetadata(_Record):
    variables_available: bool = True
    variables_message: Optional[str] = None
    plan_required: Optional[str] = None


class TokenCollection(_Record):
    colors: List[DesignToken] = Field(default_factory=list)
    typography: List[DesignToken] = Field(default_factory=list)
    spacing: List[DesignToken] = Field(default_factory=list)
    effects: List[DesignToken] = Field(default_factory=list)
    variables: List[DesignToken] = Field(default_factory=list)
    metadata: TokenMetadata = Field(default_factory=TokenMetadata)
    css_variables: Optional[str] = None


# =====================================================================
# Sessions
# =====================================================================

StatusValue = Literal["pending", "in-progress", "implemented", "needs-update"]


class ComponentStatus(_Record):
    component_id: str
    component_name: str
    status: StatusValue
    last_modified: Optional[datetime] = None
    implemented_at: Optional[datetime] = None
    notes: Optional[str] = None
    framework: Optional[str] = None


class WorkingFileSession(_Record):
    file_id: str
    file_name: Optional[str] = None
    url: str
    set_at: datetime
    last_accessed: datetime
    status_map: Dict[str, ComponentStatus] = Field(default_factory=dict)


class ImplementationQueue(_Record):
    pending: List[ComponentListItem] = Field(default_factory=list)
    in_progress: List[ComponentListItem] = Field(default_factory=list)
    implemented: List[ComponentListItem] = Field(default_factory=list)
    needs_update: List[ComponentListItem] = Field(default_factory=list)
    total: int = 0


class ImplementationStats(_Record):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    implemented: int = 0
    needs_update: int = 0
    completion_percentage: int = 0


class ImplementationSummary(_Record):
    has_working_file: bool = False
    working_file: Optional[WorkingFileSession] = None
    stats: ImplementationStats = Field(default_factory=ImplementationStats)


class ImplementationDetails(_Record):
    """Everything needed to build one component of the working file."""

    file_id: str
    file_name: Optional[str] = None
    specification: ComponentSpecification
    implementation_status: Optional[ComponentStatus] = None
    framework_hints: Dict[str, Any] = Field(default_factory=dict)
    target_framework: str = "generic"
