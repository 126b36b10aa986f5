"""
pyindexbind Binder Factory
Resolves descriptors to binders, memoized, with placeholders for
self-referential descriptors

Resolution recurses through the provider chain: a collection provider asks
for its element binder, a complex provider for one binder per property. A
descriptor met again while its own binder is still being built gets a
PlaceholderBinder, which is pointed at the real binder once it exists.
Placeholders never escape ``create_binder``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pyindexbind.binders.base import NO_OP_BINDER, ModelBinder, PlaceholderBinder
from pyindexbind.binders.providers import BinderProvider
from pyindexbind.context import BindingInfo
from pyindexbind.errors import ConfigurationError
from pyindexbind.options import BinderOptions
from pyindexbind.types import TypeDescriptor

logger = logging.getLogger(__name__)


#==============================================================================
# Cache Key
#==============================================================================

class _Key:
    """(descriptor, token) pair compared by identity"""

    __slots__ = ("descriptor", "token")

    def __init__(self, descriptor: TypeDescriptor, token: Any) -> None:
        self.descriptor = descriptor
        self.token = token

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, _Key)
            and self.descriptor is other.descriptor
            and self.token is other.token
        )

    def __hash__(self) -> int:
        return hash((id(self.descriptor), id(self.token)))

    def __repr__(self) -> str:
        return f"{self.token!r} (Type: '{self.descriptor.name}')"


#==============================================================================
# Provider Context
#==============================================================================

@dataclass
class BinderProviderContext:
    """
    What a provider sees while resolving one descriptor.

    Attributes:
        factory: The factory resolving this descriptor
        descriptor: Descriptor to create a binder for
        binding_info: Effective binding overrides for the descriptor
        visited: Per-resolution map of in-progress and finished binders
    """
    factory: "ModelBinderFactory"
    descriptor: TypeDescriptor
    binding_info: BindingInfo
    visited: Dict[_Key, Optional[ModelBinder]]

    @property
    def options(self) -> BinderOptions:
        return self.factory.options

    def create_binder(self, descriptor: TypeDescriptor) -> ModelBinder:
        """Resolve a nested descriptor within the same resolution"""
        nested = BinderProviderContext(
            factory=self.factory,
            descriptor=descriptor,
            binding_info=BindingInfo(
                binder_model_name=descriptor.binder_name,
                binding_source=descriptor.binding_source,
                property_filter=descriptor.property_filter,
            ),
            visited=self.visited,
        )
        return self.factory._create_binder_cached(nested, descriptor)


#==============================================================================
# Model Binder Factory
#==============================================================================

class ModelBinderFactory:
    """
    Memoizing binder resolver.

    The cache is shared by every caller; binders are stored with
    ``dict.setdefault`` so concurrent resolutions of one key agree on the
    first binder stored.

    Args:
        providers: Provider chain, asked in order
        options: Options passed on to providers
    """

    def __init__(self, providers: Sequence[BinderProvider], options: Optional[BinderOptions] = None) -> None:
        self.providers: List[BinderProvider] = list(providers)
        self.options = options or BinderOptions()
        self._cache: Dict[_Key, ModelBinder] = {}

    def create_binder(
        self,
        descriptor: TypeDescriptor,
        cache_token: Any = None,
        binding_info: Optional[BindingInfo] = None,
    ) -> ModelBinder:
        """
        Resolve the binder for a descriptor.

        Args:
            descriptor: Descriptor to bind
            cache_token: Cache discriminator, None to bypass the cache
            binding_info: Overrides applied on top of the descriptor

        Returns:
            A fully resolved binder

        Raises:
            ConfigurationError: If no providers are configured or none of
                them can bind the descriptor
        """
        if not self.providers:
            raise ConfigurationError.no_binder_providers()

        cached = self._try_get_cached(descriptor, cache_token)
        if cached is not None:
            return cached

        info = binding_info or BindingInfo()
        context = BinderProviderContext(
            factory=self,
            descriptor=descriptor,
            binding_info=BindingInfo(
                binder_model_name=info.binder_model_name or descriptor.binder_name,
                binding_source=info.binding_source or descriptor.binding_source,
                property_filter=info.property_filter or descriptor.property_filter,
            ),
            visited={},
        )
        binder = self._create_binder_uncached(context, cache_token)
        if binder is None:
            raise ConfigurationError.could_not_create_binder(descriptor.name)

        logger.debug(f"Resolved {descriptor.name} to {type(binder).__name__}")
        return self._add_to_cache(descriptor, cache_token, binder)

    #---------------------------------------------------------------------------
    # Resolution
    #---------------------------------------------------------------------------

    def _create_binder_cached(self, context: BinderProviderContext, token: Any) -> ModelBinder:
        cached = self._try_get_cached(context.descriptor, token)
        if cached is not None:
            return cached

        binder = self._create_binder_uncached(context, token) or NO_OP_BINDER
        if not isinstance(binder, PlaceholderBinder):
            binder = self._add_to_cache(context.descriptor, token, binder)
        return binder

    def _create_binder_uncached(self, context: BinderProviderContext, token: Any) -> Optional[ModelBinder]:
        descriptor = context.descriptor
        if not descriptor.binding_allowed:
            return NO_OP_BINDER

        key = _Key(descriptor, token)
        visited = context.visited
        if key in visited:
            existing = visited[key]
            if existing is not None:
                return existing
            logger.debug(f"Installing placeholder for self-referential {descriptor.name}")
            placeholder = PlaceholderBinder()
            visited[key] = placeholder
            return placeholder

        visited[key] = None
        result: Optional[ModelBinder] = None
        for provider in self.providers:
            result = provider.get_binder(context)
            if result is not None:
                break

        placeholder = visited[key]
        if isinstance(placeholder, PlaceholderBinder):
            placeholder.inner = result or NO_OP_BINDER

        if result is not None:
            visited[key] = result
        return result

    #---------------------------------------------------------------------------
    # Cache
    #---------------------------------------------------------------------------

    def _try_get_cached(self, descriptor: TypeDescriptor, token: Any) -> Optional[ModelBinder]:
        if token is None:
            return None
        return self._cache.get(_Key(descriptor, token))

    def _add_to_cache(self, descriptor: TypeDescriptor, token: Any, binder: ModelBinder) -> ModelBinder:
        if token is None:
            return binder
        return self._cache.setdefault(_Key(descriptor, token), binder)

    def __len__(self) -> int:
        return len(self._cache)
