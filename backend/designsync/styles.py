"""Style / effect conversion - Figma visual properties to style data.

Provides deterministic conversion from a single DesignNode to:
- record properties: colors, typography, spacing, effects, dimensions
- a canonical visual-property bag (dimensions, opacity, visibility, fills,
  strokes, cornerRadius, typography)
- a CSS-like projection of that bag plus box-shadow / filter strings

Surface colors (fills, strokes) are 6-digit hex. Effect colors are
``rgba(r, g, b, a)`` strings so translucency survives.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Union

from .models import (
    RGBA,
    ColorProperty,
    Dimensions,
    DesignNode,
    DropShadow,
    EffectProperty,
    InnerShadow,
    Measure,
    SolidPaint,
    SpacingProperty,
    TypeStyle,
    TypographyProperty,
)

logger = logging.getLogger(__name__)

DEFAULT_SHADOW_COLOR = "rgba(0, 0, 0, 0.25)"
DEFAULT_FONT_SIZE = 16.0
DEFAULT_LINE_HEIGHT_RATIO = 1.2


# ---------------------------------------------------------------------------
# Number / color formatting
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def format_number(value: Union[int, float]) -> Union[int, float]:
    """Drop a float's trailing ``.0`` so ``120.0`` renders as ``120``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def color_to_hex(color: RGBA) -> str:
    """Convert a 0-1 float RGBA to ``#rrggbb`` (alpha dropped)."""
    r = round_half_up(color.r * 255)
    g = round_half_up(color.g * 255)
    b = round_half_up(color.b * 255)
    return f"#{r:02x}{g:02x}{b:02x}"


def color_to_rgba(color: RGBA) -> str:
    """Convert a 0-1 float RGBA to ``rgba(r, g, b, a)`` keeping alpha as given."""
    r = round_half_up(color.r * 255)
    g = round_half_up(color.g * 255)
    b = round_half_up(color.b * 255)
    return f"rgba({r}, {g}, {b}, {format_number(color.a)})"


def _px(value: float) -> str:
    return f"{format_number(value)}px"


# ---------------------------------------------------------------------------
# Text metrics
# ---------------------------------------------------------------------------


def resolve_line_height(
    font_size: Optional[float],
    line_height: Optional[Measure],
    line_height_px: Optional[float] = None,
) -> float:
    """Resolve a line height to pixels.

    Pixel values are used as-is, percentages are relative to the font size,
    and a missing value defaults to 1.2x the font size.
    """
    size = font_size or DEFAULT_FONT_SIZE
    if line_height_px:
        return line_height_px
    if line_height is not None:
        if line_height.unit == "PERCENT":
            return size * (line_height.value / 100)
        return line_height.value
    return size * DEFAULT_LINE_HEIGHT_RATIO


def resolve_letter_spacing(
    font_size: Optional[float],
    letter_spacing: Optional[Union[float, Measure]],
) -> float:
    """Resolve letter spacing to pixels (percent of font size, default 0)."""
    if letter_spacing is None:
        return 0
    if isinstance(letter_spacing, (int, float)):
        return letter_spacing
    if letter_spacing.unit == "PERCENT":
        return (font_size or DEFAULT_FONT_SIZE) * (letter_spacing.value / 100)
    return letter_spacing.value


def _style_line_height(style: TypeStyle) -> float:
    return resolve_line_height(style.font_size, style.line_height, style.line_height_px)


# ---------------------------------------------------------------------------
# Record properties
# ---------------------------------------------------------------------------


def extract_dimensions(node: DesignNode) -> Dimensions:
    bounds = node.bounding_box
    if bounds is None:
        return Dimensions()
    return Dimensions(width=bounds.width, height=bounds.height)


def extract_colors(node: DesignNode) -> List[ColorProperty]:
    """Solid fills and strokes as hex colors, indexed by paint position."""
    colors: List[ColorProperty] = []
    for index, fill in enumerate(node.fills):
        if isinstance(fill, SolidPaint) and fill.color is not None:
            colors.append(ColorProperty(
                property=f"fill-{index}", value=color_to_hex(fill.color), type="fill",
            ))
    for index, stroke in enumerate(node.strokes):
        if isinstance(stroke, SolidPaint) and stroke.color is not None:
            colors.append(ColorProperty(
                property=f"stroke-{index}", value=color_to_hex(stroke.color), type="stroke",
            ))
    return colors


def extract_typography(node: DesignNode) -> List[TypographyProperty]:
    style = node.style
    if style is None:
        return []
    return [TypographyProperty(
        property="text",
        font_family=style.font_family,
        font_size=style.font_size,
        font_weight=style.font_weight,
        line_height=_style_line_height(style),
    )]


def extract_spacing(node: DesignNode) -> List[SpacingProperty]:
    """Auto-layout padding and item gap."""
    spacing: List[SpacingProperty] = []
    padding = (node.padding_top, node.padding_right, node.padding_bottom, node.padding_left)
    if any(side is not None for side in padding):
        top, right, bottom, left = (side or 0 for side in padding)
        spacing.append(SpacingProperty(
            property="padding", top=top, right=right, bottom=bottom, left=left,
        ))
    if node.item_spacing:
        gap = node.item_spacing
        spacing.append(SpacingProperty(property="gap", top=gap, right=gap, bottom=gap, left=gap))
    return spacing


def extract_effects(node: DesignNode) -> List[EffectProperty]:
    """Every effect on the node, invisible ones included (flagged ``visible=False``)."""
    effects: List[EffectProperty] = []
    for effect in node.effects:
        if isinstance(effect, (DropShadow, InnerShadow)):
            effects.append(EffectProperty(
                type=effect.type,
                color=color_to_rgba(effect.color) if effect.color is not None else None,
                offset=effect.offset,
                radius=effect.radius,
                spread=effect.spread or 0,
                visible=effect.visible,
            ))
        else:
            effects.append(EffectProperty(
                type=effect.type, radius=effect.radius, visible=effect.visible,
            ))
    return effects


# ---------------------------------------------------------------------------
# Visual-property bag
# ---------------------------------------------------------------------------


def _paint_entry(paint: Any, extra: Dict[str, Any]) -> Dict[str, Any]:
    if isinstance(paint, SolidPaint) and paint.color is not None:
        return {"type": paint.type, "color": color_to_hex(paint.color), **extra}
    return paint.model_dump(by_alias=True, exclude_none=True)


def extract_visual_properties(node: DesignNode) -> Dict[str, Any]:
    """Canonical property bag for one node. Absent properties are omitted."""
    properties: Dict[str, Any] = {}

    bounds = node.bounding_box
    if bounds is not None:
        properties["dimensions"] = {
            "width": bounds.width,
            "height": bounds.height,
            "x": bounds.x,
            "y": bounds.y,
        }

    if node.opacity is not None and node.opacity != 1:
        properties["opacity"] = node.opacity

    if not node.visible:
        properties["visibility"] = "hidden"

    if node.fills:
        properties["fills"] = [
            _paint_entry(fill, {"opacity": fill.opacity}) for fill in node.fills
        ]

    if node.strokes:
        weight = node.stroke_weight or 1
        properties["strokes"] = [
            _paint_entry(stroke, {"weight": weight}) for stroke in node.strokes
        ]

    if node.corner_radius is not None:
        properties["cornerRadius"] = node.corner_radius

    if node.type == "TEXT" and node.style is not None:
        style = node.style
        properties["typography"] = {
            "fontFamily": style.font_family,
            "fontSize": style.font_size,
            "fontWeight": style.font_weight,
            "lineHeight": _style_line_height(style),
            "letterSpacing": resolve_letter_spacing(style.font_size, style.letter_spacing),
        }

    return properties


def visual_properties_to_css(properties: Dict[str, Any]) -> Dict[str, Any]:
    """Project a visual-property bag onto CSS-like camelCase properties."""
    css: Dict[str, Any] = {}

    dimensions = properties.get("dimensions")
    if dimensions:
        css["width"] = _px(dimensions["width"])
        css["height"] = _px(dimensions["height"])

    if "opacity" in properties:
        css["opacity"] = properties["opacity"]

    if properties.get("visibility"):
        css["visibility"] = properties["visibility"]

    fills = properties.get("fills") or []
    if fills and fills[0].get("type") == "SOLID" and "color" in fills[0]:
        css["backgroundColor"] = fills[0]["color"]
        if fills[0].get("opacity", 1) != 1:
            css["backgroundOpacity"] = fills[0]["opacity"]

    strokes = properties.get("strokes") or []
    if strokes and strokes[0].get("type") == "SOLID" and "color" in strokes[0]:
        css["borderColor"] = strokes[0]["color"]
        css["borderWidth"] = _px(strokes[0]["weight"])
        css["borderStyle"] = "solid"

    if "cornerRadius" in properties:
        css["borderRadius"] = _px(properties["cornerRadius"])

    typography = properties.get("typography")
    if typography:
        if typography.get("fontFamily") is not None:
            css["fontFamily"] = typography["fontFamily"]
        if typography.get("fontSize") is not None:
            css["fontSize"] = _px(typography["fontSize"])
        if typography.get("fontWeight") is not None:
            css["fontWeight"] = format_number(typography["fontWeight"])
        if typography.get("lineHeight") is not None:
            css["lineHeight"] = format_number(typography["lineHeight"])

    return css


# ---------------------------------------------------------------------------
# Effects -> CSS
# ---------------------------------------------------------------------------


def _shadow_to_css(effect: EffectProperty) -> Optional[str]:
    if effect.offset is None or effect.radius is None:
        return None
    x = round_half_up(effect.offset.x)
    y = round_half_up(effect.offset.y)
    blur = round_half_up(effect.radius)
    spread = round_half_up(effect.spread or 0)
    color = effect.color or DEFAULT_SHADOW_COLOR
    return f"{x}px {y}px {blur}px {spread}px {color}"


def _blur_to_css(effect: EffectProperty) -> Optional[str]:
    if effect.radius is None or effect.radius <= 0:
        return None
    return f"blur({round_half_up(effect.radius)}px)"


def effects_to_css(effects: List[EffectProperty]) -> Dict[str, str]:
    """Combine effects into ``boxShadow`` / ``filter`` / ``backdropFilter``.

    Shadows are comma-joined in input order; blurs are space-joined.
    Invisible effects contribute nothing.
    """
    shadows: List[str] = []
    filters: List[str] = []
    backdrop_filters: List[str] = []

    for effect in effects:
        if not effect.visible:
            continue
        if effect.type == "DROP_SHADOW":
            value = _shadow_to_css(effect)
            if value:
                shadows.append(value)
        elif effect.type == "INNER_SHADOW":
            value = _shadow_to_css(effect)
            if value:
                shadows.append(f"inset {value}")
        elif effect.type == "LAYER_BLUR":
            value = _blur_to_css(effect)
            if value:
                filters.append(value)
        elif effect.type == "BACKGROUND_BLUR":
            value = _blur_to_css(effect)
            if value:
                backdrop_filters.append(value)
        else:
            logger.debug(f"effects_to_css: skipping unsupported effect type={effect.type}")

    css: Dict[str, str] = {}
    if shadows:
        css["boxShadow"] = ", ".join(shadows)
    if filters:
        css["filter"] = " ".join(filters)
    if backdrop_filters:
        css["backdropFilter"] = " ".join(backdrop_filters)
    return css


def node_to_css(node: DesignNode) -> Dict[str, Any]:
    """Full CSS-like projection of a single node."""
    return {
        **visual_properties_to_css(extract_visual_properties(node)),
        **effects_to_css(extract_effects(node)),
    }
