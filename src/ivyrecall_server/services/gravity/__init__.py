"""Gravity field store package."""
from .base import (
    GravityFieldStore,
    GravityFieldStorePluginBase,
    EXT_GRAVITY_FIELD_STORE,
)

from scitrera_app_framework import Variables, get_extension


def get_gravity_field_store(v: Variables = None) -> GravityFieldStore:
    """Get the gravity field store instance."""
    return get_extension(EXT_GRAVITY_FIELD_STORE, v)


__all__ = (
    'GravityFieldStore',
    'GravityFieldStorePluginBase',
    'get_gravity_field_store',
    'EXT_GRAVITY_FIELD_STORE',
)
