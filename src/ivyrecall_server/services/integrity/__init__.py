"""Integrity provider package."""
from .base import (
    IntegrityProvider,
    IntegrityProviderPluginBase,
    EXT_INTEGRITY_PROVIDER,
)

from scitrera_app_framework import Variables, get_extension


def get_integrity_provider(v: Variables = None) -> IntegrityProvider:
    """Get the integrity provider instance."""
    return get_extension(EXT_INTEGRITY_PROVIDER, v)


__all__ = (
    'IntegrityProvider',
    'IntegrityProviderPluginBase',
    'get_integrity_provider',
    'EXT_INTEGRITY_PROVIDER',
)
