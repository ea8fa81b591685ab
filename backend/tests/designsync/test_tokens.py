"""Tests for designsync.tokens."""

import pytest

from designsync.cache import design_tokens_key
from designsync.errors import UpstreamUnavailableError
from designsync.integrations.figma_client import FigmaApiError
from designsync.models import DesignToken, StyleRecord, TokenCollection, TokenMetadata, Variable, VariableCollection
from designsync.tokens import (
    DesignTokenExtractor,
    filter_token_types,
    infer_color_category,
    infer_color_usage,
    infer_effect_category,
    infer_typography_category,
    infer_variable_category,
    normalize_token_name,
    render_css_variables,
    style_to_token,
    synthesize_tokens,
    variable_to_token,
    variables_unavailable,
)


@pytest.fixture
def extractor(fetcher, cache):
    return DesignTokenExtractor(fetcher, cache)


def _collections(*collections):
    return {c["id"]: VariableCollection.model_validate(c) for c in collections}


# ---------------------------------------------------------------------------
# Naming and categories
# ---------------------------------------------------------------------------


class TestNaming:

    @pytest.mark.parametrize("name,expected", [
        ("Primary / Button BG", "primary-button-bg"),
        ("  --Spacing__XL--  ", "spacing-xl"),
        ("Tokens-spacing/md", "tokens-spacing-md"),
        ("Ünïcode Name", "n-code-name"),
    ])
    def test_normalize(self, name, expected):
        assert normalize_token_name(name) == expected

    @pytest.mark.parametrize("name,expected", [
        ("Primary / Button BG", "primary"),
        ("Accent", "secondary"),
        ("Gray 100", "neutral"),
        ("Danger", "semantic"),
        ("Text / Muted", "text"),
        ("Surface", "background"),
        ("Outline", "border"),
        ("Purple", "miscellaneous"),
    ])
    def test_color_category(self, name, expected):
        assert infer_color_category(name) == expected

    def test_color_usage(self):
        assert infer_color_usage("Button Text") == ["buttons", "text"]
        assert infer_color_usage("Purple") == ["general"]

    def test_typography_and_effect_categories(self):
        assert infer_typography_category("Heading / H1") == "headings"
        assert infer_typography_category("Body Small") == "body"
        assert infer_typography_category("Overline") == "miscellaneous"
        assert infer_effect_category("Shadow / Card") == "shadows"
        assert infer_effect_category("Glass Blur") == "blur"
        assert infer_effect_category("Elevation") == "effects"

    @pytest.mark.parametrize("name,kind,expected", [
        ("spacing/md", "FLOAT", "spacing"),
        ("border/width", "FLOAT", "border"),
        ("corner/lg", "FLOAT", "radius"),
        ("size/icon", "FLOAT", "dimension"),
        ("font/body", "STRING", "font-family"),
        ("copy/cta", "STRING", "content"),
        ("brand/primary", "COLOR", "primary"),
        ("flags/beta", "BOOLEAN", "miscellaneous"),
    ])
    def test_variable_category(self, name, kind, expected):
        assert infer_variable_category(name, kind) == expected


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------


class TestStyleTokens:

    def test_fill_style(self):
        token = style_to_token(StyleRecord.model_validate({
            "name": "Primary / Button BG",
            "style_type": "FILL",
            "fills": [{"type": "SOLID", "color": {"r": 0.2, "g": 0.4, "b": 1}}],
        }))
        assert token.name == "primary-button-bg"
        assert token.type == "color"
        assert token.category == "primary"
        assert token.value == "#3366ff"
        assert token.usage == ["buttons"]

    def test_fill_style_without_solid(self):
        token = style_to_token(StyleRecord.model_validate({"name": "Gradient", "style_type": "FILL"}))
        assert token.value == "#000000"

    def test_text_style(self):
        token = style_to_token(StyleRecord.model_validate({
            "name": "Heading / H1",
            "styleType": "TEXT",
            "font_family": "Inter",
            "font_size": 32,
            "font_weight": 700,
            "line_height": {"value": 150, "unit": "PERCENT"},
        }))
        assert token.type == "typography"
        assert token.category == "headings"
        assert token.value["fontFamily"] == "Inter"
        assert token.value["lineHeight"] == pytest.approx(48)
        assert token.value["letterSpacing"] == 0

    def test_text_style_defaults(self):
        token = style_to_token(StyleRecord.model_validate({"name": "Body", "style_type": "TEXT"}))
        assert token.value["fontFamily"] == "inherit"
        assert token.value["fontSize"] == 16
        assert token.value["fontWeight"] == 400
        assert token.value["lineHeight"] == pytest.approx(19.2)

    def test_effect_style(self):
        token = style_to_token(StyleRecord.model_validate({
            "name": "Shadow / Card",
            "style_type": "EFFECT",
            "effects": [{"type": "DROP_SHADOW", "offset": {"x": 0, "y": 2}, "radius": 4,
                         "color": {"r": 0, "g": 0, "b": 0, "a": 0.5}}],
        }))
        assert token.category == "shadows"
        assert token.value == {
            "type": "DROP_SHADOW",
            "color": "#000000",
            "offset": {"x": 0, "y": 2},
            "radius": 4,
            "spread": 0,
        }

    def test_effect_style_without_effects(self):
        token = style_to_token(StyleRecord.model_validate({"name": "Glow", "style_type": "EFFECT"}))
        assert token.value == {}
        assert token.category == "effects"

    def test_grid_style_skipped(self):
        assert style_to_token(StyleRecord.model_validate({"name": "Grid", "style_type": "GRID"})) is None


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------


class TestVariableTokens:

    def test_default_mode_resolution(self):
        collections = _collections({"id": "c", "name": "Colors", "defaultModeId": "dark",
                                    "modes": [{"modeId": "light"}, {"modeId": "dark"}]})
        token = variable_to_token(Variable.model_validate({
            "id": "v", "name": "Brand/Primary", "resolvedType": "COLOR",
            "variableCollectionId": "c",
            "valuesByMode": {"light": {"r": 1, "g": 1, "b": 1, "a": 1},
                             "dark": {"r": 0, "g": 0, "b": 0, "a": 1}},
        }), collections)

        assert token.name == "colors-brand-primary"
        assert token.value == "#000000"
        assert token.type == "color"
        assert token.category == "primary"
        assert token.collection_name == "Colors"
        assert token.variable_id == "v"
        assert token.modes == {"light": "#ffffff", "dark": "#000000"}

    def test_first_mode_when_no_default(self):
        collections = _collections({"id": "c", "name": "Sizes", "modes": [{"modeId": "m"}]})
        token = variable_to_token(Variable.model_validate({
            "id": "v", "name": "gap", "resolvedType": "FLOAT",
            "variableCollectionId": "c", "valuesByMode": {"m": 8},
        }), collections)
        assert token.value == 8
        assert token.type == "spacing"
        assert token.modes is None

    def test_missing_default_value_skipped(self):
        collections = _collections({"id": "c", "name": "X", "defaultModeId": "m"})
        variable = Variable.model_validate({
            "id": "v", "name": "gap", "resolvedType": "FLOAT",
            "variableCollectionId": "c", "valuesByMode": {"other": 4},
        })
        assert variable_to_token(variable, collections) is None

    def test_falsy_values_kept(self):
        collections = _collections({"id": "c", "name": "Flags", "defaultModeId": "m"})
        token = variable_to_token(Variable.model_validate({
            "id": "v", "name": "beta", "resolvedType": "BOOLEAN",
            "variableCollectionId": "c", "valuesByMode": {"m": False},
        }), collections)
        assert token.value is False
        assert token.type == "boolean"

    def test_unknown_collection(self):
        variable = Variable.model_validate({
            "id": "v", "name": "x", "resolvedType": "FLOAT", "valuesByMode": {"m": 1},
        })
        assert variable_to_token(variable, {}) is None

    def test_alias_value_passes_through(self):
        collections = _collections({"id": "c", "name": "Colors", "defaultModeId": "m"})
        alias = {"type": "VARIABLE_ALIAS", "id": "VariableID:1:2"}
        token = variable_to_token(Variable.model_validate({
            "id": "v", "name": "link", "resolvedType": "COLOR",
            "variableCollectionId": "c", "valuesByMode": {"m": alias},
        }), collections)
        assert token.value == alias


# ---------------------------------------------------------------------------
# Collection assembly
# ---------------------------------------------------------------------------


class TestSynthesize:

    def test_variables_mirrored_into_buckets(self):
        collections = [VariableCollection.model_validate(
            {"id": "c", "name": "T", "defaultModeId": "m"})]
        variables = [
            Variable.model_validate({"id": "1", "name": "spacing/md", "resolvedType": "FLOAT",
                                     "variableCollectionId": "c", "valuesByMode": {"m": 16}}),
            Variable.model_validate({"id": "2", "name": "font/body", "resolvedType": "STRING",
                                     "variableCollectionId": "c", "valuesByMode": {"m": "Inter"}}),
            Variable.model_validate({"id": "3", "name": "copy/cta", "resolvedType": "STRING",
                                     "variableCollectionId": "c", "valuesByMode": {"m": "Go"}}),
        ]
        tokens = synthesize_tokens([], variables, collections)

        assert [t.name for t in tokens.variables] == ["t-spacing-md", "t-font-body", "t-copy-cta"]
        assert [t.name for t in tokens.spacing] == ["t-spacing-md"]
        assert [t.name for t in tokens.typography] == ["t-font-body"]
        assert tokens.colors == []

    def test_filter_preserves_metadata(self):
        tokens = TokenCollection(
            colors=[DesignToken(name="a", value="#000000", type="color")],
            spacing=[DesignToken(name="b", value=4, type="spacing")],
            metadata=TokenMetadata(variables_available=False, variables_message="nope"),
        )
        filtered = filter_token_types(tokens, ["colors"])
        assert [t.name for t in filtered.colors] == ["a"]
        assert filtered.spacing == []
        assert filtered.metadata.variables_available is False
        assert filter_token_types(tokens, ["all", "colors"]) is tokens

    def test_css_variables(self):
        tokens = TokenCollection(
            colors=[DesignToken(name="brand", value="#3366ff", type="color")],
            spacing=[DesignToken(name="gap", value=8, type="spacing")],
            typography=[DesignToken(name="h1", value={"fontSize": 32}, type="typography")],
            variables=[DesignToken(name="gap", value=8, type="spacing")],
        )
        assert render_css_variables(tokens) == ":root {\n  --brand: #3366ff;\n  --gap: 8px;\n}"


class TestVariablesUnavailable:

    @pytest.mark.parametrize("status,message,expected_message,plan", [
        (403, "Invalid scope(s): file_variables:read", "Figma Variables require Enterprise plan. Using legacy styles only.", "Enterprise"),
        (403, "Token is missing required scope", "Insufficient permissions for Variables API. May require Enterprise plan.", "Enterprise"),
        (403, "Forbidden", "Access denied to Variables API", None),
        (500, "boom", "Variables API temporarily unavailable", None),
        (None, "timeout", "Variables API temporarily unavailable", None),
    ])
    def test_messages(self, status, message, expected_message, plan):
        metadata = variables_unavailable(FigmaApiError(status, message))
        assert metadata.variables_available is False
        assert metadata.variables_message == expected_message
        assert metadata.plan_required == plan


# ---------------------------------------------------------------------------
# DesignTokenExtractor
# ---------------------------------------------------------------------------


class TestDesignTokenExtractor:

    @pytest.mark.asyncio
    async def test_extracts_styles_and_variables(self, extractor):
        tokens = await extractor.extract_tokens("F")

        assert [t.name for t in tokens.colors] == ["primary-button-bg", "colors-brand-primary"]
        assert [t.name for t in tokens.typography] == ["heading-h1"]
        assert [t.name for t in tokens.effects] == ["shadow-card"]
        assert [t.name for t in tokens.spacing] == ["tokens-spacing-md"]
        assert len(tokens.variables) == 2
        assert tokens.metadata.variables_available is True

    @pytest.mark.asyncio
    async def test_cached_and_filtered_post_cache(self, extractor, fetcher, cache):
        colors_only = await extractor.extract_tokens("F", token_types=["colors"])
        everything = await extractor.extract_tokens("F")

        assert colors_only.typography == []
        assert len(everything.typography) == 1
        assert fetcher.calls == {"file": 0, "styles": 1, "variables": 1}
        assert len(cache.get(design_tokens_key("F")).typography) == 1

    @pytest.mark.asyncio
    async def test_variables_403_degrades(self, extractor, fetcher):
        fetcher.variables_error = FigmaApiError(403, "Invalid scope(s): file_variables:read")

        tokens = await extractor.extract_tokens("F", token_types=["colors"])

        assert [t.name for t in tokens.colors] == ["primary-button-bg"]
        assert tokens.variables == []
        assert tokens.metadata.variables_available is False
        assert tokens.metadata.plan_required == "Enterprise"

    @pytest.mark.asyncio
    async def test_degraded_flag_does_not_leak_between_files(self, extractor, fetcher):
        fetcher.variables_error = FigmaApiError(403, "Forbidden")
        degraded = await extractor.extract_tokens("F1")
        fetcher.variables_error = None
        healthy = await extractor.extract_tokens("F2")

        assert degraded.metadata.variables_available is False
        assert healthy.metadata.variables_available is True

    @pytest.mark.asyncio
    async def test_styles_error_propagates(self, extractor, fetcher):
        fetcher.styles_error = FigmaApiError(500, "Internal error")
        with pytest.raises(UpstreamUnavailableError, match="500"):
            await extractor.extract_tokens("F")

    @pytest.mark.asyncio
    async def test_css_variables_format(self, extractor):
        tokens = await extractor.extract_tokens("F", token_types=["colors"], format="css-variables")
        assert tokens.css_variables.startswith(":root {")
        assert "--primary-button-bg: #3366ff;" in tokens.css_variables
        assert "--colors-brand-primary: #ff0000;" in tokens.css_variables

    @pytest.mark.asyncio
    async def test_standard_format_has_no_css(self, extractor):
        tokens = await extractor.extract_tokens("F")
        assert tokens.css_variables is None

    @pytest.mark.asyncio
    async def test_variables_transport_error_degrades(self, extractor, fetcher):
        fetcher.variables_error = FigmaApiError(None, "Figma API transport error: /v1/files/F/variables/local")

        tokens = await extractor.extract_tokens("F")

        assert [t.name for t in tokens.effects] == ["shadow-card"]
        assert tokens.metadata.variables_available is False
        assert tokens.metadata.variables_message == "Variables API temporarily unavailable"

    @pytest.mark.asyncio
    async def test_caller_mutation_does_not_reach_cache(self, extractor, fetcher):
        first = await extractor.extract_tokens("F")
        first.colors.clear()
        first.metadata.variables_available = False

        second = await extractor.extract_tokens("F")

        assert len(second.colors) == 2
        assert second.metadata.variables_available is True
        assert fetcher.calls["styles"] == 1
