"""Shared fixtures for designsync tests.

Provides:
- Sample Figma payloads (file document, styles, variables)
- FakeFetcher: in-memory DesignFileFetcher that counts upstream calls
- Manual clocks for cache / session TTL tests
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from designsync.cache import CacheService
from designsync.integrations.figma_client import FigmaApiError
from designsync.models import DesignDocument, StyleRecord, Variable, VariableCollection
from designsync.session import SessionManager


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------


def make_button(node_id: str = "1:2", name: str = "Button") -> Dict[str, Any]:
    """COMPONENT with one solid fill, one drop shadow, and a hover layer."""
    return {
        "id": node_id,
        "name": name,
        "type": "COMPONENT",
        "absoluteBoundingBox": {"x": 0, "y": 0, "width": 120, "height": 40},
        "fills": [{"type": "SOLID", "color": {"r": 0.2, "g": 0.4, "b": 1, "a": 1}}],
        "strokes": [],
        "cornerRadius": 8,
        "effects": [{
            "type": "DROP_SHADOW",
            "visible": True,
            "offset": {"x": 0, "y": 4},
            "radius": 8,
            "spread": 0,
            "color": {"r": 0, "g": 0, "b": 0, "a": 0.25},
        }],
        "componentPropertyDefinitions": {
            "label": {"type": "TEXT", "defaultValue": "Click me"},
            "disabled": {"type": "BOOLEAN", "defaultValue": False},
        },
        "children": [
            {
                "id": "1:3",
                "name": "Hover State",
                "type": "FRAME",
                "fills": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0, "a": 1}}],
                "children": [],
            },
        ],
    }


def make_document(
    children: Optional[List[Dict[str, Any]]] = None,
    last_modified: str = "2024-05-01T12:00:00Z",
) -> Dict[str, Any]:
    if children is None:
        children = [
            make_button(),
            {
                "id": "2:1",
                "name": "Input Field",
                "type": "COMPONENT_SET",
                "children": [
                    {"id": "2:2", "name": "State=Default", "type": "COMPONENT", "children": []},
                    {"id": "2:3", "name": "State=Error", "type": "COMPONENT", "children": []},
                ],
            },
            {"id": "3:1", "name": "Card", "type": "COMPONENT", "children": []},
        ]
    return {
        "name": "Design System",
        "lastModified": last_modified,
        "version": "42",
        "document": {
            "id": "0:0",
            "name": "Document",
            "type": "DOCUMENT",
            "children": [
                {"id": "0:1", "name": "Page 1", "type": "CANVAS", "children": children},
            ],
        },
        "components": {
            "1:2": {"key": "k1", "name": "Button", "description": "Primary action"},
        },
        "componentSets": {},
    }


def make_styles() -> List[Dict[str, Any]]:
    return [
        {
            "key": "s1",
            "name": "Primary / Button BG",
            "style_type": "FILL",
            "fills": [{"type": "SOLID", "color": {"r": 0.2, "g": 0.4, "b": 1, "a": 1}}],
        },
        {
            "key": "s2",
            "name": "Heading / H1",
            "style_type": "TEXT",
            "font_family": "Inter",
            "font_size": 32,
            "font_weight": 700,
            "line_height": {"value": 150, "unit": "PERCENT"},
        },
        {
            "key": "s3",
            "name": "Shadow / Card",
            "style_type": "EFFECT",
            "effects": [{
                "type": "DROP_SHADOW",
                "offset": {"x": 0, "y": 2},
                "radius": 4,
                "color": {"r": 0, "g": 0, "b": 0, "a": 0.5},
            }],
        },
    ]


def make_variables() -> Dict[str, Any]:
    return {
        "variables": {
            "v1": {
                "id": "v1",
                "name": "spacing/md",
                "resolvedType": "FLOAT",
                "variableCollectionId": "c1",
                "valuesByMode": {"m1": 16},
            },
            "v2": {
                "id": "v2",
                "name": "brand/primary",
                "resolvedType": "COLOR",
                "variableCollectionId": "c2",
                "valuesByMode": {
                    "light": {"r": 1, "g": 0, "b": 0, "a": 1},
                    "dark": {"r": 0, "g": 0, "b": 0, "a": 1},
                },
            },
        },
        "variableCollections": {
            "c1": {"id": "c1", "name": "Tokens", "defaultModeId": "m1",
                   "modes": [{"modeId": "m1", "name": "Default"}]},
            "c2": {"id": "c2", "name": "Colors", "defaultModeId": "light",
                   "modes": [{"modeId": "light", "name": "Light"},
                             {"modeId": "dark", "name": "Dark"}]},
        },
    }


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeFetcher:
    """In-memory DesignFileFetcher. Set ``*_error`` to make a call fail."""

    def __init__(self, document=None, styles=None, variables=None):
        self.document = document if document is not None else make_document()
        self.styles = styles if styles is not None else make_styles()
        self.variables = variables if variables is not None else make_variables()
        self.file_error: Optional[FigmaApiError] = None
        self.styles_error: Optional[FigmaApiError] = None
        self.variables_error: Optional[FigmaApiError] = None
        self.calls: Dict[str, int] = {"file": 0, "styles": 0, "variables": 0}

    async def fetch_file(self, file_id: str) -> DesignDocument:
        self.calls["file"] += 1
        if self.file_error:
            raise self.file_error
        return DesignDocument.model_validate(self.document)

    async def fetch_styles(self, file_id: str) -> List[StyleRecord]:
        self.calls["styles"] += 1
        if self.styles_error:
            raise self.styles_error
        return [StyleRecord.model_validate(style) for style in self.styles]

    async def fetch_variables(self, file_id: str):
        self.calls["variables"] += 1
        if self.variables_error:
            raise self.variables_error
        variables = [Variable.model_validate(v) for v in self.variables["variables"].values()]
        collections = [
            VariableCollection.model_validate(c)
            for c in self.variables["variableCollections"].values()
        ]
        return variables, collections


class ManualClock:
    """Monotonic clock advanced by hand (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualDateClock:
    """Aware-datetime clock advanced by hand."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def date_clock():
    return ManualDateClock()


@pytest.fixture
def cache(clock):
    return CacheService(max_size=100, default_ttl=60, clock=clock)


@pytest.fixture
def sessions(date_clock):
    return SessionManager(clock=date_clock)


@pytest.fixture
def document_factory():
    return make_document


@pytest.fixture
def button_factory():
    return make_button
