"""Reference tag grammar: `[kind:productId:itemId]` tokens in assistant replies.

The assistant is told to cite content only with ids from the turn's listing.
Nothing forces it to, so every tag found in a reply is checked against that
same listing. Tags that do not resolve stay in the text but are reported as
invalid so renderers show them as plain text instead of links.
"""

import re

from app.core.schemas_chat import ReferenceKind, ReferenceListing, ReferenceTag
from app.core.schemas_search import DocumentResult, ResourceResult, SearchResult, VideoResult
from app.core.search_results import resolve_navigation

_KINDS = "|".join(kind.value for kind in ReferenceKind)

# Labelled markdown form first, then the bare bracket form
_TAG_RE = re.compile(
    rf"\[(?P<label>[^\[\]]+)\]\((?P<lkind>{_KINDS}):(?P<lproduct>[^:\s)]+):(?P<litem>[^\s)]+)\)"
    rf"|\[(?P<kind>{_KINDS}):(?P<product>[^:\s\]]+):(?P<item>[^\s\]]+)\]"
)


def format_reference_tag(kind: ReferenceKind, product_id: str, item_id: str) -> str:
    return f"[{kind.value}:{product_id}:{item_id}]"


def parse_reference_tags(text: str) -> list[ReferenceTag]:
    """Find every reference tag in text, in order of appearance."""
    tags = []
    for match in _TAG_RE.finditer(text or ""):
        if match.group("lkind"):
            tags.append(
                ReferenceTag(
                    raw=match.group(0),
                    kind=ReferenceKind(match.group("lkind")),
                    product_id=match.group("lproduct"),
                    item_id=match.group("litem"),
                    label=match.group("label").strip(),
                )
            )
        else:
            tags.append(
                ReferenceTag(
                    raw=match.group(0),
                    kind=ReferenceKind(match.group("kind")),
                    product_id=match.group("product"),
                    item_id=match.group("item"),
                )
            )
    return tags


def _as_result(tag: ReferenceTag, title: str) -> SearchResult:
    if tag.kind == ReferenceKind.ARTICLE:
        return DocumentResult(id=tag.item_id, title=title, product_id=tag.product_id)
    if tag.kind == ReferenceKind.RESOURCE:
        return ResourceResult(id=tag.item_id, title=title, product_id=tag.product_id)
    return VideoResult(id=tag.item_id, title=title, product_id=tag.product_id)


def validate_reference_tags(text: str, listing: ReferenceListing | None) -> list[ReferenceTag]:
    """
    Parse tags and resolve each one against the listing supplied for the turn.

    A tag is valid only when its product segment equals the listing's product
    id and its item id appears in the section for its kind. Without a listing
    no tag is valid.

    Args:
        text: Assistant reply
        listing: The listing the directive for this turn was compiled from

    Returns:
        Tags in order of appearance; valid ones carry title and navigation target
    """
    resolved = []
    for tag in parse_reference_tags(text):
        entry = None
        if listing is not None and tag.product_id == listing.product.id:
            entry = listing.find(tag.kind, tag.item_id)
        if entry is not None:
            tag.valid = True
            tag.title = entry.title
            tag.navigation = resolve_navigation(_as_result(tag, entry.title), "")
        resolved.append(tag)
    return resolved
