"""Pydantic schemas for grounded chat turns and reference listings."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from app.core.schemas_search import NavigationTarget


class ReferenceKind(str, Enum):
    ARTICLE = "article"
    RESOURCE = "resource"
    VIDEO = "video"


class ChatErrorKind(str, Enum):
    CONFIGURATION = "configuration_error"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    UPSTREAM = "upstream_error"
    CONTEXT_UNAVAILABLE = "context_unavailable"


class ChatMessage(BaseModel):
    """A single conversation turn."""

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request for one grounded chat turn."""

    messages: list[ChatMessage] = Field(..., min_length=1)
    product_id: str | None = Field(default=None, description="Product scope for the listing")


# =============================================================================
# Reference listing
# =============================================================================


class ProductSummary(BaseModel):
    id: str
    name: str
    description: str | None = None


class ListedDocument(BaseModel):
    id: str
    title: str
    preview: str = ""


class ListedResource(BaseModel):
    id: str
    title: str
    resource_type: str | None = None
    description: str | None = None


class ListedVideo(BaseModel):
    id: str
    title: str
    caption: str | None = None


class ReferenceListing(BaseModel):
    """ID-exact snapshot of one product's linkable content for a single turn."""

    product: ProductSummary
    documents: list[ListedDocument] = Field(default_factory=list)
    resources: list[ListedResource] = Field(default_factory=list)
    videos: list[ListedVideo] = Field(default_factory=list)

    def entries_for(self, kind: ReferenceKind) -> list[ListedDocument | ListedResource | ListedVideo]:
        if kind == ReferenceKind.ARTICLE:
            return list(self.documents)
        if kind == ReferenceKind.RESOURCE:
            return list(self.resources)
        return list(self.videos)

    def find(self, kind: ReferenceKind, item_id: str) -> ListedDocument | ListedResource | ListedVideo | None:
        for entry in self.entries_for(kind):
            if entry.id == item_id:
                return entry
        return None


class ReferenceTag(BaseModel):
    """A `[kind:productId:itemId]` token found in generated text."""

    raw: str
    kind: ReferenceKind
    product_id: str
    item_id: str
    label: str | None = None
    valid: bool = False
    title: str | None = None
    navigation: NavigationTarget | None = None
