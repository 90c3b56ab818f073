"""Compile the grounded system directive for support chat turns."""

# ruff: noqa: E501

from app.core.reference_context import TurnContext
from app.core.schemas_chat import ChatMessage, ProductSummary, ReferenceKind, ReferenceListing

SWITCH_PRODUCT_MARKER = "__SWITCH_PRODUCT__"

GROUNDED_RULES = """CRITICAL INSTRUCTIONS FOR REFERENCING CONTENT:

1. **Never invent identifiers**: Only use an ARTICLE_ID, RESOURCE_ID or VIDEO_ID that appears verbatim in the lists above. Copy it character by character. If you cannot find a matching entry, do not create a reference for it.

2. **Reference tag format** (fixed, positional, no spaces):
   - Articles: [article:{product_id}:ARTICLE_ID]
   - Resources: [resource:{product_id}:RESOURCE_ID]
   - Videos: [video:{product_id}:VIDEO_ID]
   The middle segment is always the Product ID {product_id}, never the product name.

3. **Matching**: Compare the user's wording with the TITLES above. Be flexible with plurals, abbreviations and variations ("dashboard" matches "PPA Dashboard", "setup" matches "Account Setup").

4. **Multiple matches**: Name the single best match first, then mention the other matches as alternatives.

5. **No match**: Say plainly that no matching content exists and offer the closest available titles. Never make one up.

6. **Verify before answering**: Re-read the lists and check that every ID you used appears exactly there. Remove any reference that does not."""

PRODUCT_MISMATCH_RULES = """PRODUCT MISMATCH DETECTION:
If the user's question is clearly about one of the OTHER AVAILABLE PRODUCTS rather than {product_name}:
- Respond with: "It looks like you're asking about [Other Product Name], but you currently have {product_name} selected. Would you like to switch to [Other Product Name] for accurate information? {marker}"
- The {marker} marker is required; it triggers product selection.
- Do not answer questions about the other product."""

NO_PRODUCT_DIRECTIVE = """You are {chatbot_name}, an intelligent support agent helping users with their products.

No product is selected for this conversation, so no content is available to reference.

Ask the user which product they need help with before answering. Do not emit any [article:...], [resource:...] or [video:...] tags in this reply.

AVAILABLE PRODUCTS:
{products}"""


def _product_lines(products: list[ProductSummary]) -> str:
    return "\n".join(f"- {p.name}: {p.description or 'No description'}" for p in products)


def _section(heading: str, lines: list[str], empty: str) -> str:
    body = "\n".join(lines) if lines else empty
    return f"{heading}\n{body}"


def render_reference_listing(listing: ReferenceListing) -> str:
    """
    Serialize a listing into the enumerated, ID-exact block the model reads.

    Every entry is one line: - TITLE: "<title>" | <KIND>_ID: <id> | <aux fields>
    """
    pid = listing.product.id

    articles = _section(
        f"Available Articles (use [{ReferenceKind.ARTICLE.value}:{pid}:ARTICLE_ID] format):",
        [f'- TITLE: "{d.title}" | ARTICLE_ID: {d.id} | PREVIEW: {d.preview}' for d in listing.documents],
        "No articles available",
    )
    resources = _section(
        f"Available Resources (use [{ReferenceKind.RESOURCE.value}:{pid}:RESOURCE_ID] format):",
        [
            f'- TITLE: "{r.title}" | RESOURCE_ID: {r.id} | TYPE: {r.resource_type or "unknown"} '
            f"| DESC: {r.description or 'No description'}"
            for r in listing.resources
        ],
        "No resources available",
    )
    videos = _section(
        f"Available Videos (use [{ReferenceKind.VIDEO.value}:{pid}:VIDEO_ID] format):",
        [f'- TITLE: "{v.title}" | VIDEO_ID: {v.id} | CAPTION: {v.caption or "No caption"}' for v in listing.videos],
        "No videos available",
    )

    return (
        f"Product: {listing.product.name}\n"
        f"Product ID: {pid}\n"
        f"Description: {listing.product.description or ''}\n\n"
        f"CRITICAL: When referencing content, you MUST use the exact Product ID provided above: {pid}\n\n"
        f"{articles}\n\n{resources}\n\n{videos}"
    )


def compile_system_directive(context: TurnContext) -> str:
    """
    Build the sole system instruction for a chat turn.

    Args:
        context: Assembled turn context

    Returns:
        Directive string; without a listing it tells the model to ask for a
        product and forbids reference tags
    """
    if context.listing is None:
        return NO_PRODUCT_DIRECTIVE.format(
            chatbot_name=context.chatbot_name,
            products=_product_lines(context.other_products) or "No products available",
        )

    listing = context.listing
    parts = [
        f"You are {context.chatbot_name}, an intelligent support agent helping users with their products.",
        "CURRENT PRODUCT CONTEXT:\n" + render_reference_listing(listing),
        "OTHER AVAILABLE PRODUCTS:\n" + (_product_lines(context.other_products) or "No other products available"),
        GROUNDED_RULES.format(product_id=listing.product.id),
    ]
    if context.other_products:
        parts.append(
            PRODUCT_MISMATCH_RULES.format(product_name=listing.product.name, marker=SWITCH_PRODUCT_MARKER)
        )
    parts.append(
        "Keep responses concise and friendly, and always include a reference tag when pointing to content."
    )
    return "\n\n".join(parts)


def build_completion_messages(directive: str, turns: list[ChatMessage]) -> list[dict[str, str]]:
    """Prepend the directive, unmodified, ahead of the conversation turns."""
    return [{"role": "system", "content": directive}] + [
        {"role": turn.role, "content": turn.content} for turn in turns
    ]
