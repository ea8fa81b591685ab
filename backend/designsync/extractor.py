"""Component Extractor - component records, listings, specifications, changes.

Orchestrates the tree walker, style converter and state inference over a
fetched DesignDocument:

    fetch_file -> find node by id -> properties / interface -> ComponentRecord
                                  -> styling / states      -> ComponentSpecification

Results are cached per key family (see designsync.cache). Fetched documents
are cached briefly as well so that a specification miss right after a record
miss does not refetch the file.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .cache import (
    CacheService,
    component_key,
    component_list_key,
    component_spec_key,
    file_metadata_key,
)
from .errors import ComponentNotFoundError, InvalidArgumentError, UpstreamUnavailableError
from .integrations.figma_client import DesignFileFetcher, FigmaApiError
from .models import (
    Accessibility,
    ChangeSet,
    ComponentChange,
    ComponentInterface,
    ComponentListing,
    ComponentListItem,
    ComponentProperties,
    ComponentRecord,
    ComponentSpecification,
    DesignDocument,
    DesignNode,
    EventDefinition,
    KeyBinding,
    PropDefinition,
    Styling,
    Usage,
    Variant,
)
from .settings import (
    CACHE_TTL_COMPONENT,
    CACHE_TTL_COMPONENT_LIST,
    CACHE_TTL_COMPONENT_SPEC,
    CACHE_TTL_FILE_METADATA,
)
from .states import extract_states
from .styles import (
    effects_to_css,
    extract_colors,
    extract_dimensions,
    extract_effects,
    extract_spacing,
    extract_typography,
    node_to_css,
    visual_properties_to_css,
)
from .walker import collect_components, find_by_id

logger = logging.getLogger(__name__)

# Figma component property type -> generic prop type
PROP_TYPE_MAP = {
    "BOOLEAN": "boolean",
    "TEXT": "string",
    "INSTANCE_SWAP": "Component",
    "VARIANT": "string",
}

INTERACTIVE_KEYWORDS = ("button", "link", "input", "select", "checkbox", "radio")

# Checked in order; first keyword contained in the name wins
ARIA_ROLES = (
    ("button", "button"),
    ("link", "link"),
    ("input", "textbox"),
)

# Always present in a specification's interactions, {} when no layer matched
STANDARD_INTERACTIONS = ("hover", "active", "focus", "disabled")


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken as UTC so they compare against Figma's."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_interactive(node: DesignNode) -> bool:
    name = node.name.lower()
    return any(keyword in name for keyword in INTERACTIVE_KEYWORDS)


def infer_aria_role(node: DesignNode) -> Optional[str]:
    name = node.name.lower()
    for keyword, role in ARIA_ROLES:
        if keyword in name:
            return role
    return None


def build_component_interface(node: DesignNode) -> ComponentInterface:
    """Props from component property definitions, plus a click event for controls."""
    props: List[PropDefinition] = []
    for name, definition in (node.property_definitions or {}).items():
        props.append(PropDefinition(
            name=name,
            type=PROP_TYPE_MAP.get(definition.type, "any"),
            required=False,
            default=definition.default_value,
            values=definition.variant_options,
        ))

    events: List[EventDefinition] = []
    if is_interactive(node):
        events.append(EventDefinition(
            name="click",
            type="Event",
            description="Fired when component is clicked",
        ))

    # TODO: derive slots from INSTANCE_SWAP properties once slot naming is settled
    return ComponentInterface(props=props, events=events, slots=[])


def describe(document: DesignDocument, node: DesignNode) -> Optional[str]:
    """Description from the file-level component / component-set metadata."""
    metadata = document.components.get(node.id) or document.component_sets.get(node.id)
    if metadata is None or not metadata.description:
        return None
    return metadata.description


class ComponentExtractor:
    """Builds and caches component records and specifications for a file.

    Args:
        client: Anything implementing DesignFileFetcher (usually FigmaClient).
        cache: Shared CacheService.
    """

    def __init__(self, client: DesignFileFetcher, cache: CacheService):
        self._client = client
        self._cache = cache

    # ------------------------------------------------------------------
    # Document access
    # ------------------------------------------------------------------

    async def fetch_document(self, file_id: str) -> DesignDocument:
        """Fetch a document from upstream, bypassing the document cache."""
        try:
            document = await self._client.fetch_file(file_id)
        except FigmaApiError as e:
            logger.warning(f"fetch_file failed: file={file_id}, status={e.status}, error={e.message}")
            raise UpstreamUnavailableError(e.status, e.message) from e
        self._cache.set(file_metadata_key(file_id), document, CACHE_TTL_FILE_METADATA)
        return document

    async def _load_document(self, file_id: str) -> DesignDocument:
        document = self._cache.get(file_metadata_key(file_id))
        if document is not None:
            return document
        return await self.fetch_document(file_id)

    @staticmethod
    def _locate(document: DesignDocument, file_id: str, component_id: str) -> DesignNode:
        node = find_by_id(document.document, component_id)
        if node is None:
            raise ComponentNotFoundError(file_id, component_id)
        return node

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def extract_component(
        self,
        file_id: str,
        component_id: str,
        include_variants: bool = True,
        include_instances: bool = False,
    ) -> ComponentRecord:
        key = component_key(file_id, component_id)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"extract_component: cache hit key={key}")
            return cached.model_copy(deep=True)

        document = await self._load_document(file_id)
        node = self._locate(document, file_id, component_id)
        record = self._build_record(document, node, include_variants)

        self._cache.set(key, record, CACHE_TTL_COMPONENT)
        logger.info(
            f"extract_component: file={file_id}, component={component_id}, "
            f"name={node.name!r}, props={len(record.component_interface.props)}"
        )
        return record.model_copy(deep=True)

    def _build_record(
        self,
        document: DesignDocument,
        node: DesignNode,
        include_variants: bool,
    ) -> ComponentRecord:
        variants: Optional[List[Variant]] = None
        if include_variants and node.type == "COMPONENT_SET":
            # Variant expansion is not implemented; component sets report an empty list
            variants = []

        return ComponentRecord(
            id=node.id,
            name=node.name,
            kind=node.type,
            description=describe(document, node),
            properties=ComponentProperties(
                dimensions=extract_dimensions(node),
                colors=extract_colors(node),
                typography=extract_typography(node),
                spacing=extract_spacing(node),
                effects=extract_effects(node),
            ),
            variants=variants,
            component_interface=build_component_interface(node),
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_components(
        self,
        file_id: str,
        kind: Optional[str] = None,
        name: Optional[str] = None,
        published: Optional[bool] = None,
    ) -> ComponentListing:
        """List COMPONENT / COMPONENT_SET nodes of a file.

        The unfiltered listing is cached; ``kind``, ``name`` (case-insensitive
        regex) and ``published`` filters are applied on every call.
        """
        key = component_list_key(file_id)
        components = self._cache.get(key)
        if components is None:
            document = await self._load_document(file_id)
            components = self._build_listing(document)
            self._cache.set(key, components, CACHE_TTL_COMPONENT_LIST)
            logger.info(f"list_components: file={file_id}, components={len(components)}")

        filtered = self._apply_filters(components, kind, name, published)
        return ComponentListing(
            components=[item.model_copy() for item in filtered],
            total_count=len(filtered),
            has_more=False,
        )

    @staticmethod
    def _build_listing(document: DesignDocument) -> List[ComponentListItem]:
        items: List[ComponentListItem] = []
        for node in collect_components(document.document):
            items.append(ComponentListItem(
                id=node.id,
                name=node.name,
                kind=node.type,
                description=describe(document, node),
                variant_count=len(node.children) if node.type == "COMPONENT_SET" else None,
                last_modified=document.last_modified,
                # TODO: read published state from GET /v1/files/:key/components
                published=True,
            ))
        return items

    @staticmethod
    def _apply_filters(
        components: List[ComponentListItem],
        kind: Optional[str],
        name: Optional[str],
        published: Optional[bool],
    ) -> List[ComponentListItem]:
        pattern = None
        if name:
            try:
                pattern = re.compile(name, re.IGNORECASE)
            except re.error as e:
                raise InvalidArgumentError(f"Invalid name filter {name!r}: {e}") from e

        result = []
        for item in components:
            if kind and item.kind != kind:
                continue
            if pattern is not None and not pattern.search(item.name):
                continue
            if published is not None and item.published != published:
                continue
            result.append(item)
        return result

    # ------------------------------------------------------------------
    # Specification
    # ------------------------------------------------------------------

    async def extract_component_specification(
        self,
        file_id: str,
        component_id: str,
        include_accessibility: bool = True,
        include_interactions: bool = True,
    ) -> ComponentSpecification:
        key = component_spec_key(file_id, component_id)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"extract_component_specification: cache hit key={key}")
            return cached.model_copy(deep=True)

        record = await self.extract_component(
            file_id, component_id, include_variants=True, include_instances=False,
        )
        document = await self._load_document(file_id)
        node = self._locate(document, file_id, component_id)
        if record.variants is None and node.type == "COMPONENT_SET":
            # Cached record was built without variants
            record = self._build_record(document, node, include_variants=True)

        states = extract_states(node)
        styling = Styling(
            base_styles=node_to_css(node),
            variants={},
            states={
                state: {
                    **visual_properties_to_css(capture.properties),
                    **effects_to_css(capture.effects),
                }
                for state, capture in states.items()
            },
            state_info=states,
        )

        accessibility = None
        if include_accessibility:
            accessibility = Accessibility(
                role=infer_aria_role(node),
                keyboard_navigation=(
                    [KeyBinding(key="Enter", action="activate"),
                     KeyBinding(key="Space", action="activate")]
                    if is_interactive(node) else []
                ),
            )

        interactions: Optional[Dict[str, Any]] = None
        if include_interactions:
            interactions = {state: states.get(state) or {} for state in STANDARD_INTERACTIONS}
            interactions.update(states)

        specification = ComponentSpecification(
            component=record,
            styling=styling,
            accessibility=accessibility,
            interactions=interactions,
            usage=Usage(guidelines=[
                f"Use {record.name} for consistent UI patterns",
                "Follow the design system guidelines for proper implementation",
            ]),
        )

        self._cache.set(key, specification, CACHE_TTL_COMPONENT_SPEC)
        logger.info(
            f"extract_component_specification: file={file_id}, component={component_id}, "
            f"states={sorted(states)}"
        )
        return specification.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------

    async def check_changes(
        self,
        file_id: str,
        last_sync: datetime,
        component_ids: Optional[List[str]] = None,
    ) -> ChangeSet:
        """Report components modified after ``last_sync``.

        Per-component timestamps are approximated by the file's last-modified
        time, so either every component (or every requested one) is reported
        as modified or none is. New and deleted components are never reported.
        """
        document = await self.fetch_document(file_id)
        since = _as_utc(last_sync)

        if _as_utc(document.last_modified) <= since:
            logger.info(f"check_changes: file={file_id} unchanged since {since.isoformat()}")
            return ChangeSet()

        components = self._build_listing(document)
        self._cache.set(component_list_key(file_id), components, CACHE_TTL_COMPONENT_LIST)
        if component_ids:
            wanted = set(component_ids)
            components = [item for item in components if item.id in wanted]

        changed = [
            ComponentChange(
                id=item.id,
                name=item.name,
                change_type="modified",
                last_modified=item.last_modified,
                changes=["properties"],
            )
            for item in components
            if _as_utc(item.last_modified) > since
        ]
        logger.info(f"check_changes: file={file_id}, changed={len(changed)}")
        return ChangeSet(has_changes=bool(changed), changed_components=changed)
