"""DesignSyncService - validated operation dispatch.

One async method per operation. Each takes the raw argument dict handed over
by the protocol layer, validates it against designsync.schemas, and returns
pydantic models. Validation failures raise InvalidArgumentError; everything
else propagates from the extractors and session tracker unchanged.

Usage:
    service = DesignSyncService(FigmaClient())
    spec = await service.get_component_specification(
        {"fileId": "abc123", "componentId": "1:2"}
    )
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .cache import CacheService
from .errors import InvalidArgumentError, NoWorkingFileError
from .extractor import ComponentExtractor
from .frameworks import generate_framework_hints
from .integrations.figma_client import DesignFileFetcher
from .integrations.figma_url import parse_figma_url
from .logging_config import get_service_logger
from .models import (
    ChangeSet,
    ComponentListing,
    ComponentRecord,
    ComponentSpecification,
    ComponentStatus,
    ImplementationDetails,
    ImplementationQueue,
    ImplementationSummary,
    TokenCollection,
    WorkingFileSession,
)
from .schemas import (
    CheckComponentChangesArgs,
    ComponentFilter,
    GetComponentArgs,
    GetComponentForImplementationArgs,
    GetComponentSpecificationArgs,
    GetDesignTokensArgs,
    GetImplementationQueueArgs,
    ListComponentsArgs,
    SetWorkingFileArgs,
    UpdateComponentStatusArgs,
)
from .session import SessionManager
from .tokens import DesignTokenExtractor

logger = get_service_logger()

ArgsT = TypeVar("ArgsT", bound=BaseModel)


def _validate(schema: Type[ArgsT], args: Optional[Dict[str, Any]]) -> ArgsT:
    try:
        return schema.model_validate(args or {})
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '(root)'}: {error['msg']}"
            for error in e.errors()
        )
        raise InvalidArgumentError(f"Invalid arguments for {schema.__name__}: {details}") from e


def _filter_kwargs(component_filter: Optional[ComponentFilter]) -> Dict[str, Any]:
    if component_filter is None:
        return {}
    return {
        "kind": component_filter.type,
        "name": component_filter.name,
        "published": component_filter.published,
    }


class DesignSyncService:
    """Facade over extraction, token synthesis, caching and sessions.

    Args:
        client: Upstream fetcher (FigmaClient in production).
        cache: Shared cache; a fresh CacheService when omitted.
        sessions: Session tracker; a fresh SessionManager when omitted.
    """

    def __init__(
        self,
        client: DesignFileFetcher,
        cache: Optional[CacheService] = None,
        sessions: Optional[SessionManager] = None,
    ):
        self.cache = cache if cache is not None else CacheService()
        self.sessions = sessions if sessions is not None else SessionManager()
        self.components = ComponentExtractor(client, self.cache)
        self.tokens = DesignTokenExtractor(client, self.cache)

    def _require_working_file(self, client_id: str) -> WorkingFileSession:
        session = self.sessions.get_working_file(client_id)
        if session is None:
            raise NoWorkingFileError(client_id)
        return session

    # ------------------------------------------------------------------
    # File-scoped operations
    # ------------------------------------------------------------------

    async def get_component(self, args: Dict[str, Any]) -> ComponentRecord:
        params = _validate(GetComponentArgs, args)
        logger.info(f"get_component: file={params.file_id}, component={params.component_id}")
        return await self.components.extract_component(
            params.file_id,
            params.component_id,
            include_variants=params.include_variants,
            include_instances=params.include_instances,
        )

    async def list_components(self, args: Dict[str, Any]) -> ComponentListing:
        params = _validate(ListComponentsArgs, args)
        logger.info(f"list_components: file={params.file_id}")
        return await self.components.list_components(params.file_id, **_filter_kwargs(params.filter))

    async def get_design_tokens(self, args: Dict[str, Any]) -> TokenCollection:
        params = _validate(GetDesignTokensArgs, args)
        logger.info(
            f"get_design_tokens: file={params.file_id}, types={params.token_types}, "
            f"format={params.format}"
        )
        return await self.tokens.extract_tokens(
            params.file_id, token_types=params.token_types, format=params.format,
        )

    async def get_component_specification(self, args: Dict[str, Any]) -> ComponentSpecification:
        params = _validate(GetComponentSpecificationArgs, args)
        logger.info(
            f"get_component_specification: file={params.file_id}, component={params.component_id}"
        )
        return await self.components.extract_component_specification(
            params.file_id,
            params.component_id,
            include_accessibility=params.include_accessibility,
            include_interactions=params.include_interactions,
        )

    async def check_component_changes(self, args: Dict[str, Any]) -> ChangeSet:
        params = _validate(CheckComponentChangesArgs, args)
        logger.info(
            f"check_component_changes: file={params.file_id}, "
            f"since={params.last_sync_timestamp.isoformat()}"
        )
        return await self.components.check_changes(
            params.file_id, params.last_sync_timestamp, params.component_ids,
        )

    # ------------------------------------------------------------------
    # Working-file operations
    # ------------------------------------------------------------------

    async def set_working_file(self, args: Dict[str, Any], client_id: str) -> WorkingFileSession:
        """Parse the URL, confirm the file is readable, and start a session."""
        params = _validate(SetWorkingFileArgs, args)
        parsed = parse_figma_url(params.url)
        document = await self.components.fetch_document(parsed.file_id)
        session = self.sessions.set_working_file(client_id, parsed, document.name or None)
        logger.info(f"set_working_file: client={client_id}, file={parsed.file_id}")
        return session

    async def get_working_file_info(self, client_id: str) -> ImplementationSummary:
        return self.sessions.get_implementation_summary(client_id)

    async def get_implementation_queue(
        self,
        args: Dict[str, Any],
        client_id: str,
    ) -> ImplementationQueue:
        params = _validate(GetImplementationQueueArgs, args)
        session = self._require_working_file(client_id)
        listing = await self.components.list_components(
            session.file_id, **_filter_kwargs(params.filter)
        )
        queue = self.sessions.get_implementation_queue(client_id, listing.components)
        logger.info(
            f"get_implementation_queue: client={client_id}, file={session.file_id}, "
            f"total={queue.total}, pending={len(queue.pending)}"
        )
        return queue

    async def get_component_for_implementation(
        self,
        args: Dict[str, Any],
        client_id: str,
    ) -> ImplementationDetails:
        params = _validate(GetComponentForImplementationArgs, args)
        session = self._require_working_file(client_id)
        specification = await self.components.extract_component_specification(
            session.file_id,
            params.component_id,
            include_accessibility=True,
            include_interactions=True,
        )
        if not params.include_usage_examples:
            specification = specification.model_copy(update={"usage": None})

        logger.info(
            f"get_component_for_implementation: client={client_id}, "
            f"component={params.component_id}, framework={params.target_framework}"
        )
        return ImplementationDetails(
            file_id=session.file_id,
            file_name=session.file_name,
            specification=specification,
            implementation_status=self.sessions.get_component_status(client_id, params.component_id),
            framework_hints=generate_framework_hints(specification, params.target_framework),
            target_framework=params.target_framework,
        )

    async def update_component_status(
        self,
        args: Dict[str, Any],
        client_id: str,
    ) -> ComponentStatus:
        params = _validate(UpdateComponentStatusArgs, args)
        updated = self.sessions.update_component_status(
            client_id,
            params.component_id,
            params.component_name,
            params.status,
            notes=params.notes,
            framework=params.framework,
        )
        if not updated:
            raise NoWorkingFileError(client_id)
        return self.sessions.get_component_status(client_id, params.component_id)
