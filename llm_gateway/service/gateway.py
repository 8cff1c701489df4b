"""Process-wide gateway container.

Holds the shared, long-lived pieces every connection uses: the immutable
model registry, runtime settings, timeouts, the per-provider upstream
limiter and one cached adapter per provider tag. Connections and single-shot
streams borrow from it; nothing in here is per client.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from ..base.cancellation import CancellationToken
from ..base.dto import ChatRequestDTO, summarize_validation_error
from ..base.errors import ErrorKind, GatewayError
from ..base.factory import ProviderFactory, UnknownProviderError
from ..base.interfaces import ProviderAdapter
from ..base.limiter import UpstreamLimiter
from ..base.logging import get_logger, log_event
from ..base.models import ChatRequest, ModelDescriptor, ProviderTag
from ..base.registry import ModelRegistry
from ..base.streaming import StreamSession
from ..base.timeouts import TimeoutConfig, get_timeout_config
from ..base.validation import validate_request
from ..config import GatewaySettings, get_gateway_settings, provider_configured


class Gateway:
    """Shared services for every connection in the process."""

    def __init__(
        self,
        registry: ModelRegistry,
        *,
        settings: Optional[GatewaySettings] = None,
        timeouts: Optional[TimeoutConfig] = None,
        limiter: Optional[UpstreamLimiter] = None,
        adapters: Optional[Mapping[str, ProviderAdapter]] = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or get_gateway_settings()
        self.timeouts = timeouts or get_timeout_config()
        self.limiter = limiter or UpstreamLimiter(self.settings.upstream_concurrency)
        self._adapters: Dict[str, ProviderAdapter] = dict(adapters or {})
        self._logger = get_logger("gateway.service")

    @classmethod
    def from_settings(cls, settings: Optional[GatewaySettings] = None) -> "Gateway":
        """Load the catalog named by ``settings`` and build the container.

        Raises:
            ModelRegistryError: when the catalog is missing or malformed.
        """
        settings = settings or get_gateway_settings()
        registry = ModelRegistry.from_file(settings.catalog_file)
        return cls(registry, settings=settings)

    # ----- adapters -----
    def adapter_for(self, provider: Union[str, ProviderTag]) -> ProviderAdapter:
        """Return the cached adapter for ``provider``, creating it on first use."""
        tag = provider.value if isinstance(provider, ProviderTag) else str(provider)
        adapter = self._adapters.get(tag)
        if adapter is not None:
            return adapter
        try:
            adapter = ProviderFactory.create(tag, use_mocks=self.settings.use_mocks, timeouts=self.timeouts)
        except UnknownProviderError as exc:
            log_event(self._logger, "adapter.unavailable", None, provider=tag, detail=str(exc))
            raise GatewayError(
                kind=ErrorKind.INTERNAL,
                message=f"provider '{tag}' is unavailable",
                provider=tag,
                raw=exc,
            ) from exc
        self._adapters[tag] = adapter
        return adapter

    def is_available(self, provider: Union[str, ProviderTag]) -> bool:
        """True when requests for ``provider`` can be dispatched."""
        tag = provider.value if isinstance(provider, ProviderTag) else str(provider)
        adapter = self._adapters.get(tag)
        if adapter is not None:
            return bool(adapter.is_configured)
        return self.settings.use_mocks or provider_configured(tag)

    # ----- discovery -----
    def provider_status(self) -> List[Dict[str, Any]]:
        return [{"provider": tag.value, "configured": self.is_available(tag)} for tag in ProviderTag]

    def model_listing(self, provider: Optional[str] = None) -> List[Dict[str, Any]]:
        """Descriptors (wire form) with an ``available`` flag.

        Raises:
            GatewayError: ``InvalidRequest`` for an unknown provider filter.
        """
        return [
            {**d.to_dict(), "available": self.is_available(d.provider)}
            for d in self.registry.list_available(provider or None)
        ]

    # ----- requests -----
    def prepare(self, payload: Any, *, request_id: Optional[str] = None) -> Tuple[ChatRequest, ModelDescriptor]:
        """Validate an inbound payload into a dispatchable request.

        Order: wire shape, model resolution, then descriptor bounds.

        Raises:
            GatewayError: ``InvalidRequest`` or ``UnknownModel``.
        """
        try:
            dto = ChatRequestDTO.model_validate(payload)
        except ValidationError as exc:
            raise GatewayError(kind=ErrorKind.INVALID_REQUEST, message=summarize_validation_error(exc)) from exc
        default_model = self.registry.default_model
        if dto.model is None and default_model is None:
            raise GatewayError(kind=ErrorKind.INVALID_REQUEST, message="model is required")
        request = dto.to_request(
            request_id=request_id or dto.request_id or uuid.uuid4().hex,
            default_model=default_model or "",
        )
        descriptor = self.registry.resolve(request.model)
        return validate_request(request, descriptor), descriptor

    def new_session(
        self,
        request: ChatRequest,
        descriptor: ModelDescriptor,
        *,
        token: Optional[CancellationToken] = None,
        connection_id: Optional[str] = None,
    ) -> StreamSession:
        return StreamSession(
            request,
            descriptor,
            token=token,
            limiter=self.limiter,
            timeouts=self.timeouts,
            connection_id=connection_id,
        )


__all__ = ["Gateway"]
