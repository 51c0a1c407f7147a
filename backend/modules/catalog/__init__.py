"""
Server catalogue module.

Key Components:
- ServerRepository: CRUD over managed servers bound to a Store
- ImportReconciler: Bulk import and promotion of discovered servers
- CatalogService: Result-envelope operations for the UI layer
"""

from .exceptions import CatalogError, DuplicateNameError, MigrationError, ServerValidationError
from .repository import ServerRepository
from .importer import ImportReconciler, resolve_import_name

__all__ = [
    "CatalogError",
    "DuplicateNameError",
    "MigrationError",
    "ServerValidationError",
    "ServerRepository",
    "ImportReconciler",
    "resolve_import_name",
]
