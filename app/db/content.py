"""Database operations for help-center content (documents, resources, changelog, videos)."""

from typing import Any

from app.db.supabase_client import get_supabase

_PRODUCT_JOIN = "products (name, category)"


def ilike_pattern(term: str) -> str:
    """
    Wrap a raw term as a case-insensitive substring pattern with LIKE wildcards escaped.

    PostgREST rewrites every `*` in a like value to `%`, escaped or not, so a
    literal `*` is sent as the single-character wildcard `_`. Callers that need
    an exact match on such terms re-check the returned rows.
    """
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_").replace("*", "_")
    return f"%{escaped}%"


def or_ilike(columns: list[str], term: str) -> str:
    """Build a PostgREST `or` filter matching the term against any of the columns."""
    pattern = ilike_pattern(term)
    # Double-quoted so commas and parentheses in the term survive the filter grammar
    quoted = pattern.replace("\\", "\\\\").replace('"', '\\"')
    return ",".join(f'{column}.ilike."{quoted}"' for column in columns)


# =============================================================================
# Search lookups
# =============================================================================


def search_documents(term: str, limit: int) -> list[dict[str, Any]]:
    """Published documents whose title (or body text) contains the term."""
    client = get_supabase()
    result = (
        client.table("articles")
        .select(f"id, title, content, product_id, {_PRODUCT_JOIN}")
        .eq("status", "published")
        .or_(or_ilike(["title", "content::text"], term))
        .limit(limit)
        .execute()
    )
    return result.data or []


def search_resources(term: str, limit: int) -> list[dict[str, Any]]:
    """Resources whose title or description contains the term."""
    client = get_supabase()
    result = (
        client.table("product_resources")
        .select(f"id, title, description, product_id, {_PRODUCT_JOIN}")
        .or_(or_ilike(["title", "description"], term))
        .limit(limit)
        .execute()
    )
    return result.data or []


def search_changelog(term: str, limit: int) -> list[dict[str, Any]]:
    """Published release notes whose title, version (or body text) contains the term."""
    client = get_supabase()
    result = (
        client.table("release_notes")
        .select(f"id, title, version, content, product_id, {_PRODUCT_JOIN}")
        .eq("status", "published")
        .or_(or_ilike(["title", "version", "content::text"], term))
        .limit(limit)
        .execute()
    )
    return result.data or []


def search_videos(term: str, limit: int) -> list[dict[str, Any]]:
    """Videos whose title or caption contains the term."""
    client = get_supabase()
    result = (
        client.table("product_videos")
        .select(f"id, title, caption, product_id, {_PRODUCT_JOIN}")
        .or_(or_ilike(["title", "caption"], term))
        .limit(limit)
        .execute()
    )
    return result.data or []


# =============================================================================
# Per-product listings
# =============================================================================


def list_product_documents(product_id: str) -> list[dict[str, Any]]:
    client = get_supabase()
    result = (
        client.table("articles")
        .select("id, title, content")
        .eq("product_id", product_id)
        .eq("status", "published")
        .execute()
    )
    return result.data or []


def list_product_resources(product_id: str) -> list[dict[str, Any]]:
    client = get_supabase()
    result = (
        client.table("product_resources")
        .select("id, title, description, resource_type")
        .eq("product_id", product_id)
        .execute()
    )
    return result.data or []


def list_product_videos(product_id: str) -> list[dict[str, Any]]:
    client = get_supabase()
    result = (
        client.table("product_videos")
        .select("id, title, caption")
        .eq("product_id", product_id)
        .order("order_index")
        .execute()
    )
    return result.data or []


def get_product(product_id: str) -> dict[str, Any] | None:
    """Get a product's name and description by ID."""
    client = get_supabase()
    result = (
        client.table("products")
        .select("id, name, description")
        .eq("id", product_id)
        .maybe_single()
        .execute()
    )
    return result.data if result else None


def list_other_products(product_id: str | None) -> list[dict[str, Any]]:
    """Published products other than the one in scope."""
    client = get_supabase()
    result = (
        client.table("products")
        .select("id, name, description")
        .eq("status", "published")
        .execute()
    )
    return [p for p in (result.data or []) if p.get("id") != product_id]


def get_chatbot_name() -> str | None:
    """Assistant name from the most recent brand settings row."""
    client = get_supabase()
    result = (
        client.table("brand_settings")
        .select("chatbot_name")
        .order("created_at", desc=True)
        .limit(1)
        .execute()
    )
    if result.data:
        return result.data[0].get("chatbot_name")
    return None
