"""Provider abstraction layer for catalog data.

This package decouples the generators from concrete data sources.
"""

from fitplan.providers.catalog_provider import CatalogProvider
from fitplan.providers.local_provider import LocalCatalogProvider

__all__ = [
    "CatalogProvider",
    "LocalCatalogProvider",
]
