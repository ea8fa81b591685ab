"""Token Synthesizer - legacy styles + local variables -> TokenCollection.

Two independent sources feed one collection:

- published styles: FILL -> color, TEXT -> typography, EFFECT -> effect
- local variables:  resolved against their collection's default mode and
  added to ``variables`` plus the legacy bucket matching their category

When the variables endpoint is unavailable (plan or scope restrictions,
transient failures) synthesis continues with styles only and the reason is
recorded in ``TokenCollection.metadata``. Style fetch failures propagate as
UpstreamUnavailableError.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .cache import CacheService, design_tokens_key, file_styles_key
from .errors import UpstreamUnavailableError
from .integrations.figma_client import DesignFileFetcher, FigmaApiError
from .models import (
    RGBA,
    DesignToken,
    SolidPaint,
    StyleRecord,
    TokenCollection,
    TokenMetadata,
    Variable,
    VariableCollection,
)
from .settings import CACHE_TTL_DESIGN_TOKENS, CACHE_TTL_FILE_STYLES
from .styles import color_to_hex, resolve_letter_spacing, resolve_line_height

logger = logging.getLogger(__name__)

TOKEN_TYPE_KEYS = ("colors", "typography", "spacing", "effects", "variables")

# =====================================================================
# Name / category inference
# =====================================================================

_NON_SLUG_RE = re.compile(r"[^a-z0-9]")
_DASH_RUN_RE = re.compile(r"-+")

# Checked in order; first category with a keyword contained in the name wins
COLOR_CATEGORIES = (
    ("primary", ("primary", "main", "brand")),
    ("secondary", ("secondary", "accent")),
    ("neutral", ("neutral", "gray", "grey", "black", "white")),
    ("semantic", ("success", "error", "warning", "info", "danger")),
    ("text", ("text", "foreground", "content")),
    ("background", ("background", "surface", "backdrop")),
    ("border", ("border", "outline", "stroke")),
)

COLOR_USAGE = (
    ("button", "buttons"),
    ("text", "text"),
    ("background", "backgrounds"),
    ("border", "borders"),
    ("link", "links"),
    ("icon", "icons"),
)

TYPOGRAPHY_CATEGORIES = (
    ("headings", ("heading", "title")),
    ("body", ("body", "paragraph")),
    ("captions", ("caption", "small")),
    ("labels", ("label",)),
    ("buttons", ("button",)),
)

EFFECT_CATEGORIES = (
    ("shadows", ("shadow",)),
    ("blur", ("blur",)),
    ("glow", ("glow",)),
)

FLOAT_CATEGORIES = (
    ("spacing", ("spacing", "gap", "margin", "padding")),
    ("border", ("border", "stroke")),
    ("radius", ("radius", "corner")),
)

# Variable category -> legacy bucket. Unlisted categories get no bucket.
CATEGORY_BUCKETS = {
    "primary": "colors",
    "secondary": "colors",
    "neutral": "colors",
    "semantic": "colors",
    "text": "colors",
    "background": "colors",
    "border": "colors",
    "spacing": "spacing",
    "dimension": "spacing",
    "radius": "spacing",
    "font-family": "typography",
    "shadows": "effects",
    "blur": "effects",
    "glow": "effects",
}

# Style token type -> bucket
TYPE_BUCKETS = {
    "color": "colors",
    "typography": "typography",
    "effect": "effects",
}

VARIABLE_TOKEN_TYPES = {
    "COLOR": "color",
    "FLOAT": "spacing",
    "STRING": "content",
    "BOOLEAN": "boolean",
}


def normalize_token_name(name: str) -> str:
    """``"Primary / Button BG"`` -> ``"primary-button-bg"``."""
    slug = _NON_SLUG_RE.sub("-", name.lower())
    slug = _DASH_RUN_RE.sub("-", slug)
    return slug.strip("-")


def _match_category(
    name: str,
    table: Sequence[Tuple[str, Sequence[str]]],
    default: str,
) -> str:
    lowered = name.lower()
    for category, keywords in table:
        if any(keyword in lowered for keyword in keywords):
            return category
    return default


def infer_color_category(name: str) -> str:
    return _match_category(name, COLOR_CATEGORIES, "miscellaneous")


def infer_color_usage(name: str) -> List[str]:
    lowered = name.lower()
    usage = [label for keyword, label in COLOR_USAGE if keyword in lowered]
    return usage or ["general"]


def infer_typography_category(name: str) -> str:
    return _match_category(name, TYPOGRAPHY_CATEGORIES, "miscellaneous")


def infer_effect_category(name: str) -> str:
    return _match_category(name, EFFECT_CATEGORIES, "effects")


def infer_variable_category(name: str, resolved_type: str) -> str:
    if resolved_type == "COLOR":
        return infer_color_category(name)
    if resolved_type == "FLOAT":
        return _match_category(name, FLOAT_CATEGORIES, "dimension")
    if resolved_type == "STRING":
        lowered = name.lower()
        if "font" in lowered or "family" in lowered:
            return "font-family"
        return "content"
    return "miscellaneous"


# =====================================================================
# Styles -> tokens
# =====================================================================


def color_token(style: StyleRecord) -> DesignToken:
    """First solid fill as hex; ``#000000`` when the style has none."""
    fill = next(
        (paint for paint in style.fills if isinstance(paint, SolidPaint) and paint.color),
        None,
    )
    return DesignToken(
        name=normalize_token_name(style.name),
        value=color_to_hex(fill.color) if fill is not None else "#000000",
        type="color",
        description=style.description or None,
        category=infer_color_category(style.name),
        usage=infer_color_usage(style.name),
    )


def typography_token(style: StyleRecord) -> DesignToken:
    value = {
        "fontFamily": style.font_family or "inherit",
        "fontSize": style.font_size or 16,
        "fontWeight": style.font_weight or 400,
        "lineHeight": resolve_line_height(style.font_size, style.line_height),
        "letterSpacing": resolve_letter_spacing(style.font_size, style.letter_spacing),
    }
    return DesignToken(
        name=normalize_token_name(style.name),
        value=value,
        type="typography",
        description=style.description or None,
        category=infer_typography_category(style.name),
    )


def effect_token(style: StyleRecord) -> DesignToken:
    """First effect only; an effect style with no effects yields ``{}``."""
    if not style.effects:
        return DesignToken(
            name=normalize_token_name(style.name),
            value={},
            type="effect",
            category="effects",
        )

    effect = style.effects[0]
    color = getattr(effect, "color", None)
    offset = getattr(effect, "offset", None)
    value = {
        "type": effect.type,
        "color": color_to_hex(color) if color is not None else None,
        "offset": offset.model_dump() if offset is not None else None,
        "radius": effect.radius,
        "spread": getattr(effect, "spread", None),
    }
    return DesignToken(
        name=normalize_token_name(style.name),
        value=value,
        type="effect",
        description=style.description or None,
        category=infer_effect_category(style.name),
    )


def style_to_token(style: StyleRecord) -> Optional[DesignToken]:
    if style.style_type == "FILL":
        return color_token(style)
    if style.style_type == "TEXT":
        return typography_token(style)
    if style.style_type == "EFFECT":
        return effect_token(style)
    # GRID and anything newer have no token form
    return None


# =====================================================================
# Variables -> tokens
# =====================================================================


def _variable_value(value: Any, resolved_type: str) -> Any:
    """Colors become hex; aliases and scalars pass through unchanged."""
    if resolved_type == "COLOR" and isinstance(value, dict) and "r" in value:
        return color_to_hex(RGBA.model_validate(value))
    return value


def variable_to_token(
    variable: Variable,
    collections: Dict[str, VariableCollection],
) -> Optional[DesignToken]:
    """Resolve a variable against its collection's default mode.

    Returns None when the default mode carries no value. Falsy values
    (``0``, ``False``, ``""``) are real values and are kept.
    """
    collection = collections.get(variable.variable_collection_id or "")
    collection_name = collection.name if collection is not None else "unknown"

    mode_id = None
    if collection is not None:
        mode_id = collection.default_mode_id
        if not mode_id and collection.modes:
            mode_id = collection.modes[0].mode_id

    default_value = variable.values_by_mode.get(mode_id) if mode_id else None
    if default_value is None:
        logger.debug(f"variable_to_token: no default-mode value, skipping variable={variable.name!r}")
        return None

    modes = None
    if len(variable.values_by_mode) > 1:
        modes = {
            mode: _variable_value(value, variable.resolved_type)
            for mode, value in variable.values_by_mode.items()
        }

    return DesignToken(
        name=normalize_token_name(f"{collection_name}-{variable.name}"),
        value=_variable_value(default_value, variable.resolved_type),
        type=VARIABLE_TOKEN_TYPES.get(variable.resolved_type, "unknown"),
        description=variable.description or None,
        category=infer_variable_category(variable.name, variable.resolved_type),
        collection_name=collection_name,
        variable_id=variable.id,
        modes=modes,
    )


# =====================================================================
# Collection assembly
# =====================================================================


def synthesize_tokens(
    styles: Iterable[StyleRecord],
    variables: Iterable[Variable],
    collections: Iterable[VariableCollection],
    metadata: Optional[TokenMetadata] = None,
) -> TokenCollection:
    tokens = TokenCollection(metadata=metadata or TokenMetadata())
    buckets: Dict[str, List[DesignToken]] = {
        "colors": tokens.colors,
        "typography": tokens.typography,
        "spacing": tokens.spacing,
        "effects": tokens.effects,
    }

    for style in styles:
        token = style_to_token(style)
        if token is not None:
            buckets[TYPE_BUCKETS[token.type]].append(token)

    collections_by_id = {collection.id: collection for collection in collections}
    for variable in variables:
        token = variable_to_token(variable, collections_by_id)
        if token is None:
            continue
        tokens.variables.append(token)
        bucket = CATEGORY_BUCKETS.get(token.category or "")
        if bucket is not None:
            buckets[bucket].append(token)

    return tokens


def filter_token_types(tokens: TokenCollection, token_types: Sequence[str]) -> TokenCollection:
    """Keep only the requested buckets (``all`` keeps everything); metadata survives."""
    if "all" in token_types:
        return tokens
    return TokenCollection(
        metadata=tokens.metadata,
        **{key: getattr(tokens, key) for key in TOKEN_TYPE_KEYS if key in token_types},
    )


def render_css_variables(tokens: TokenCollection) -> str:
    """``:root { --name: value; }`` for every scalar token, first name wins."""
    seen = set()
    lines = []
    for key in TOKEN_TYPE_KEYS:
        for token in getattr(tokens, key):
            if token.name in seen or isinstance(token.value, (dict, list)):
                continue
            seen.add(token.name)
            value = token.value
            if token.type == "spacing" and isinstance(value, (int, float)) and not isinstance(value, bool):
                value = f"{value:g}px"
            elif isinstance(value, bool):
                value = "true" if value else "false"
            lines.append(f"  --{token.name}: {value};")
    body = "\n".join(lines)
    return f":root {{\n{body}\n}}" if lines else ":root {\n}"


def variables_unavailable(error: FigmaApiError) -> TokenMetadata:
    """Translate a variables fetch failure into collection metadata."""
    message = error.message or ""
    if error.status == 403:
        if "file_variables:read" in message:
            return TokenMetadata(
                variables_available=False,
                variables_message="Figma Variables require Enterprise plan. Using legacy styles only.",
                plan_required="Enterprise",
            )
        if "scope" in message:
            return TokenMetadata(
                variables_available=False,
                variables_message="Insufficient permissions for Variables API. May require Enterprise plan.",
                plan_required="Enterprise",
            )
        return TokenMetadata(
            variables_available=False,
            variables_message="Access denied to Variables API",
        )
    return TokenMetadata(
        variables_available=False,
        variables_message="Variables API temporarily unavailable",
    )


class DesignTokenExtractor:
    """Fetches, synthesizes and caches a file's token collection."""

    def __init__(self, client: DesignFileFetcher, cache: CacheService):
        self._client = client
        self._cache = cache

    async def _load_styles(self, file_id: str) -> List[StyleRecord]:
        key = file_styles_key(file_id)
        styles = self._cache.get(key)
        if styles is not None:
            return styles
        try:
            styles = await self._client.fetch_styles(file_id)
        except FigmaApiError as e:
            logger.warning(f"fetch_styles failed: file={file_id}, status={e.status}, error={e.message}")
            raise UpstreamUnavailableError(e.status, e.message) from e
        self._cache.set(key, styles, CACHE_TTL_FILE_STYLES)
        return styles

    async def extract_tokens(
        self,
        file_id: str,
        token_types: Sequence[str] = ("all",),
        format: str = "standard",
    ) -> TokenCollection:
        key = design_tokens_key(file_id)
        tokens = self._cache.get(key)
        if tokens is None:
            tokens = await self._synthesize(file_id)
            self._cache.set(key, tokens, CACHE_TTL_DESIGN_TOKENS)
        else:
            logger.debug(f"extract_tokens: cache hit key={key}")

        filtered = filter_token_types(tokens, token_types).model_copy(deep=True)
        if format == "css-variables":
            filtered = filtered.model_copy(update={"css_variables": render_css_variables(filtered)})
        return filtered

    async def _synthesize(self, file_id: str) -> TokenCollection:
        styles = await self._load_styles(file_id)

        variables: List[Variable] = []
        collections: List[VariableCollection] = []
        metadata = TokenMetadata()
        try:
            variables, collections = await self._client.fetch_variables(file_id)
        except FigmaApiError as e:
            metadata = variables_unavailable(e)
            logger.warning(
                f"fetch_variables failed: file={file_id}, status={e.status}, "
                f"falling back to styles only ({metadata.variables_message})"
            )

        tokens = synthesize_tokens(styles, variables, collections, metadata)
        logger.info(
            f"extract_tokens: file={file_id}, colors={len(tokens.colors)}, "
            f"typography={len(tokens.typography)}, spacing={len(tokens.spacing)}, "
            f"effects={len(tokens.effects)}, variables={len(tokens.variables)}, "
            f"variables_available={tokens.metadata.variables_available}"
        )
        return tokens
