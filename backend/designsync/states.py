"""Interaction-state inference from layer naming conventions.

A component's descendant layers often encode interaction states in their
names ("Hover State", "btn_disabled", "State=Pressed", "focus:ring").
This module recognises those layers and captures their visual data so
state styles can be emitted next to the base styles.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from .models import DesignNode, StateCapture
from .styles import extract_colors, extract_effects, extract_visual_properties
from .walker import walk

logger = logging.getLogger(__name__)

# Canonical state names, in matching priority order
STATE_NAMES = (
    "hover",
    "focus",
    "active",
    "pressed",
    "disabled",
    "selected",
    "loading",
    "error",
    "success",
    "warning",
    "visited",
)

_STATE_PROPERTY_RE = re.compile(r"state=([^,\s]+)")


def parse_state_from_layer_name(layer_name: str) -> Optional[str]:
    """Return the canonical state a layer name refers to, or None.

    ``state=<name>`` wins when it names a canonical state. Otherwise the
    first canonical state contained in the name is used; the ``_x``,
    ``x-``, ``state=x``, ``x:`` and ``:x`` conventions are all covered
    by containment.
    """
    name = layer_name.lower()

    match = _STATE_PROPERTY_RE.search(name)
    if match and match.group(1) in STATE_NAMES:
        return match.group(1)

    for state in STATE_NAMES:
        if state in name:
            return state
    return None


def capture_state(node: DesignNode) -> StateCapture:
    """Visual data of a state layer, plus one level of child property bags."""
    capture = StateCapture(
        layer_name=node.name,
        properties=extract_visual_properties(node),
        colors=extract_colors(node),
        effects=extract_effects(node),
        visibility=node.visible,
    )
    if node.children:
        child_states: Dict[str, Dict] = {}
        for child in node.children:
            child_properties = extract_visual_properties(child)
            if child_properties:
                child_states[child.name] = child_properties
        capture.child_states = child_states
    return capture


def extract_states(component: DesignNode) -> Dict[str, StateCapture]:
    """Map canonical state name -> capture for every state layer in the subtree.

    The whole subtree is scanned, the component itself included. When two
    layers resolve to the same state, the one later in pre-order wins.
    """
    states: Dict[str, StateCapture] = {}
    for node in walk(component):
        state = parse_state_from_layer_name(node.name)
        if state is None:
            continue
        logger.debug(f"extract_states: layer={node.name!r} type={node.type} -> {state}")
        states[state] = capture_state(node)

    logger.debug(f"extract_states: component={component.name!r} states={sorted(states)}")
    return states
