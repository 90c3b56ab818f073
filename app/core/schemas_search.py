"""Pydantic schemas for cross-collection search results."""

from typing import Annotated, Literal, Union
from urllib.parse import urlencode

from pydantic import BaseModel, Field


class _BaseResult(BaseModel):
    """Fields shared by every search result variant."""

    id: str
    title: str
    product_id: str | None = None
    product_name: str | None = None
    category: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        """Stable (type, id) key for list rendering and navigation."""
        return (self.type, self.id)  # type: ignore[attr-defined]


class DocumentResult(_BaseResult):
    type: Literal["document"] = "document"
    # Documents never carry a secondary line
    description: None = None


class ResourceResult(_BaseResult):
    type: Literal["resource"] = "resource"
    description: str | None = None


class ChangelogResult(_BaseResult):
    type: Literal["changelog"] = "changelog"
    description: str | None = Field(default=None, description="Release version")


class VideoResult(_BaseResult):
    type: Literal["video"] = "video"
    description: str | None = Field(default=None, description="Video caption")


SearchResult = Annotated[
    Union[DocumentResult, ResourceResult, ChangelogResult, VideoResult],
    Field(discriminator="type"),
]


class NavigationTarget(BaseModel):
    """Destination route plus query parameters for a selected result."""

    route: str
    params: dict[str, str] = Field(default_factory=dict)

    @property
    def url(self) -> str:
        if not self.params:
            return self.route
        return f"{self.route}?{urlencode(self.params)}"


class SearchHit(BaseModel):
    """A search result paired with where selecting it leads."""

    result: SearchResult
    navigation: NavigationTarget


class SearchResponse(BaseModel):
    query: str
    results: list[SearchHit] = Field(default_factory=list)


class SearchState(BaseModel):
    """Observable state of an interactive search session."""

    query: str = ""
    results: list[SearchResult] = Field(default_factory=list)
    is_searching: bool = False
    is_visible: bool = False
