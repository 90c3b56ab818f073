"""Reference context assembly for grounded chat turns."""

from dataclasses import dataclass, field

from app.core.config import Settings, get_settings
from app.core.content_text import flatten_body, preview
from app.core.logging import get_logger
from app.core.schemas_chat import (
    ListedDocument,
    ListedResource,
    ListedVideo,
    ProductSummary,
    ReferenceListing,
)
from app.db.content import (
    get_chatbot_name,
    get_product,
    list_other_products,
    list_product_documents,
    list_product_resources,
    list_product_videos,
)

logger = get_logger(__name__)


@dataclass
class TurnContext:
    """Everything the prompt compiler needs for one chat turn."""

    chatbot_name: str
    listing: ReferenceListing | None
    other_products: list[ProductSummary] = field(default_factory=list)

    @property
    def needs_product_selection(self) -> bool:
        return self.listing is None


def assemble_reference_listing(
    product_id: str | None,
    settings: Settings | None = None,
) -> ReferenceListing | None:
    """
    Build the ID-exact listing of one product's documents, resources and videos.

    Reads current store state on every call; nothing is cached.

    Args:
        product_id: Product scope; when empty no listing is produced
        settings: Optional settings override

    Returns:
        ReferenceListing, or None when no product was supplied (the caller must
        ask the user to choose one)
    """
    if not product_id:
        return None

    settings = settings or get_settings()

    product = get_product(product_id) or {}
    documents = list_product_documents(product_id)
    resources = list_product_resources(product_id)
    videos = list_product_videos(product_id)

    listing = ReferenceListing(
        product=ProductSummary(
            id=product_id,
            name=product.get("name") or "Unknown",
            description=product.get("description"),
        ),
        documents=[
            ListedDocument(
                id=str(doc["id"]),
                title=doc.get("title") or "",
                preview=preview(flatten_body(doc.get("content")), settings.REFERENCE_PREVIEW_CHARS),
            )
            for doc in documents
        ],
        resources=[
            ListedResource(
                id=str(res["id"]),
                title=res.get("title") or "",
                resource_type=res.get("resource_type"),
                description=res.get("description"),
            )
            for res in resources
        ],
        videos=[
            ListedVideo(id=str(vid["id"]), title=vid.get("title") or "", caption=vid.get("caption"))
            for vid in videos
        ],
    )

    logger.info(
        f"Reference listing for product {product_id}: documents={len(listing.documents)} "
        f"resources={len(listing.resources)} videos={len(listing.videos)}"
    )
    return listing


def _safe_chatbot_name(default: str) -> str:
    """Assistant name from brand settings, falling back to the default on failure."""
    try:
        return get_chatbot_name() or default
    except Exception as e:
        logger.debug(f"Brand settings load failed (non-fatal): {e}")
        return default


def _safe_other_products(product_id: str | None) -> list[ProductSummary]:
    """Other published products for mismatch detection, empty on failure."""
    try:
        rows = list_other_products(product_id)
    except Exception as e:
        logger.debug(f"Other products load failed (non-fatal): {e}")
        return []
    return [
        ProductSummary(id=str(row["id"]), name=row.get("name") or "", description=row.get("description"))
        for row in rows
    ]


def assemble_turn_context(product_id: str | None, settings: Settings | None = None) -> TurnContext:
    """
    Assemble the context for one chat turn.

    Listing reads are fatal on failure so that no partial directive is ever
    compiled. Persona name and other-product reads degrade to defaults.
    """
    settings = settings or get_settings()
    listing = assemble_reference_listing(product_id, settings)
    return TurnContext(
        chatbot_name=_safe_chatbot_name(settings.DEFAULT_CHATBOT_NAME),
        listing=listing,
        other_products=_safe_other_products(product_id),
    )
