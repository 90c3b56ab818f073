"""Normalize raw content rows into search results and resolve where they lead."""

from typing import Any

from app.core.schemas_search import (
    ChangelogResult,
    DocumentResult,
    NavigationTarget,
    ResourceResult,
    SearchResult,
    VideoResult,
)


def _product_fields(row: dict[str, Any]) -> dict[str, Any]:
    """Denormalized product name/category from the joined `products` relation."""
    product = row.get("products") or {}
    # PostgREST returns a list when the relationship is not detected as many-to-one
    if isinstance(product, list):
        product = product[0] if product else {}
    return {
        "product_id": row.get("product_id"),
        "product_name": product.get("name"),
        "category": product.get("category"),
    }


def normalize_documents(rows: list[dict[str, Any]]) -> list[DocumentResult]:
    return [
        DocumentResult(id=str(row["id"]), title=row.get("title") or "", **_product_fields(row))
        for row in rows
    ]


def normalize_resources(rows: list[dict[str, Any]]) -> list[ResourceResult]:
    return [
        ResourceResult(
            id=str(row["id"]),
            title=row.get("title") or "",
            description=row.get("description"),
            **_product_fields(row),
        )
        for row in rows
    ]


def normalize_changelog(rows: list[dict[str, Any]]) -> list[ChangelogResult]:
    return [
        ChangelogResult(
            id=str(row["id"]),
            title=row.get("title") or "",
            description=row.get("version"),
            **_product_fields(row),
        )
        for row in rows
    ]


def normalize_videos(rows: list[dict[str, Any]]) -> list[VideoResult]:
    return [
        VideoResult(
            id=str(row["id"]),
            title=row.get("title") or "",
            description=row.get("caption"),
            **_product_fields(row),
        )
        for row in rows
    ]


def aggregate_results(
    documents: list[dict[str, Any]],
    resources: list[dict[str, Any]],
    changelog: list[dict[str, Any]],
    videos: list[dict[str, Any]],
) -> list[SearchResult]:
    """
    Normalize every source and concatenate in source-priority order.

    Order is documents, resources, changelog, videos; within a source the
    store's return order is kept. No cross-source ranking is applied.
    """
    results: list[SearchResult] = []
    results.extend(normalize_documents(documents))
    results.extend(normalize_resources(resources))
    results.extend(normalize_changelog(changelog))
    results.extend(normalize_videos(videos))
    return results


def resolve_navigation(result: SearchResult, query: str) -> NavigationTarget:
    """
    Compute the destination for a selected result, keyed purely on its type.

    Args:
        result: The selected search result
        query: The query the result was found with (passed through for
            highlighting); omitted from the parameters when empty

    Returns:
        Route and query parameters for the destination view
    """
    search = {"search": query} if query else {}

    if not result.product_id:
        return NavigationTarget(
            route="/search",
            params={**search, "type": result.type, "id": result.id},
        )

    if isinstance(result, DocumentResult):
        return NavigationTarget(route=f"/docs/{result.product_id}/{result.id}", params=search)

    params = {**search, "type": result.type, "id": result.id}
    if isinstance(result, VideoResult):
        params["tab"] = "videos"
    return NavigationTarget(route=f"/product/{result.product_id}/docs", params=params)
