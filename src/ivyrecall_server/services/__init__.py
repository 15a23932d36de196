"""Services package for ivyrecall.

This package provides all core services using the plugin dependency injection pattern from scitrera-app-framework.

Prefer importing from specific service submodules (e.g., `from .recall import get_recall_service`)
rather than from this top-level package.
"""
