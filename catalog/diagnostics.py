"""Diagnostics routines for the component catalog."""

from __future__ import annotations

from catalog.provider import CatalogProvider, load_catalog
from core.errors import CatalogError
from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe(provider: CatalogProvider) -> DiagnosticResult:
    """Check that the catalog loads and passes validation."""

    name = "catalog"
    try:
        catalog = load_catalog(provider)
    except CatalogError as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=str(exc),
        )

    if len(catalog) == 0:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details="Catalog is empty",
        )

    empty = [component.name for component in catalog if not component.sub_components]
    if empty:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details=f"Components without sub-components: {', '.join(empty)}",
        )

    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=(
            f"{len(catalog)} components, {catalog.sub_component_count} sub-components"
        ),
    )
