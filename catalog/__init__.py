"""Component catalog providers."""

from catalog.provider import (
    CatalogProvider,
    HttpCatalogProvider,
    StaticCatalogProvider,
    YamlCatalogProvider,
    build_catalog_provider,
    load_catalog,
)

__all__ = [
    "CatalogProvider",
    "HttpCatalogProvider",
    "StaticCatalogProvider",
    "YamlCatalogProvider",
    "build_catalog_provider",
    "load_catalog",
]
