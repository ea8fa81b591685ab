"""Framework-specific implementation hints for a component specification."""

from __future__ import annotations

import json
import re
from typing import Any, Dict

from .models import ComponentRecord, ComponentSpecification

FRAMEWORKS = ("react", "angular", "vue", "svelte", "generic")

_PASCAL_RE = re.compile(r"(?:^|[^a-zA-Z0-9])([a-zA-Z0-9])")
_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATOR_RE = re.compile(r"[^a-zA-Z0-9]+")

# Prop names suggesting the component owns interactive state
_STATEFUL_PROPS = ("checked", "selected", "expanded", "active")


def to_pascal_case(value: str) -> str:
    """``"primary button"`` -> ``"PrimaryButton"``; separators are dropped."""
    return _PASCAL_RE.sub(lambda match: match.group(1).upper(), value)


def to_kebab_case(value: str) -> str:
    """``"PrimaryButton"`` or ``"Primary Button"`` -> ``"primary-button"``."""
    value = _CAMEL_BOUNDARY_RE.sub(r"\1-\2", value)
    return _SEPARATOR_RE.sub("-", value).strip("-").lower()


def _react_props(component: ComponentRecord) -> str:
    # First two props only, as an example
    return " ".join(
        f"{prop.name}={{{json.dumps(prop.default or 'value')}}}"
        for prop in component.component_interface.props[:2]
    )


def _react_state(component: ComponentRecord) -> Dict[str, Any]:
    needs_state = any(
        prop.name.lower() in _STATEFUL_PROPS for prop in component.component_interface.props
    )
    return {
        "needsState": needs_state,
        "suggestions": (
            ["useState for interactive state", "useCallback for event handlers"]
            if needs_state else []
        ),
    }


def generate_framework_hints(spec: ComponentSpecification, framework: str) -> Dict[str, Any]:
    component = spec.component
    interface = component.component_interface
    pascal = to_pascal_case(component.name)

    if framework == "react":
        return {
            "componentName": pascal,
            "propsInterface": f"{pascal}Props",
            "exampleUsage": f"<{pascal} {_react_props(component)} />",
            "stateManagement": _react_state(component),
        }

    if framework == "angular":
        kebab = to_kebab_case(component.name)
        return {
            "componentName": kebab,
            "selector": f"app-{kebab}",
            "inputs": [f"@Input() {prop.name}: {prop.type};" for prop in interface.props],
            "outputs": [
                f"@Output() {event.name} = new EventEmitter<{event.type}>();"
                for event in interface.events
            ],
        }

    if framework == "vue":
        return {
            "componentName": pascal,
            "props": [
                {
                    "name": prop.name,
                    "type": prop.type,
                    "required": prop.required,
                    "default": prop.default,
                }
                for prop in interface.props
            ],
            "emits": [event.name for event in interface.events],
        }

    if framework == "svelte":
        return {
            "componentName": pascal,
            "props": [
                f"export let {prop.name}"
                f"{'' if prop.required else ' = ' + json.dumps(prop.default)}: {prop.type};"
                for prop in interface.props
            ],
            "events": [event.name for event in interface.events],
        }

    return {
        "componentName": component.name,
        "properties": [prop.model_dump(by_alias=True) for prop in interface.props],
        "events": [event.model_dump(by_alias=True) for event in interface.events],
        "notes": "Generic implementation hints - adapt to your framework of choice",
    }
