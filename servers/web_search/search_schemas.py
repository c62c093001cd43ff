"""Data schemas for the Brave Search API."""

from typing import Optional
from pydantic import BaseModel, Field


class WebResult(BaseModel):
    """A single web page result."""

    title: str = Field(default="", description="Page title")
    url: str = Field(default="", description="Page URL")
    description: str = Field(default="", description="Snippet of the page")


class NewsResult(WebResult):
    """A single news article result."""

    age: Optional[str] = Field(default=None, description="Human readable publication age")


class SearchResponse(BaseModel):
    """The parts of a Brave Search response the server uses."""

    query: str
    web: list[WebResult] = Field(default_factory=list)
    news: list[NewsResult] = Field(default_factory=list)

    @classmethod
    def from_api(cls, query: str, data: dict) -> "SearchResponse":
        web = (data.get("web") or {}).get("results") or []
        news = (data.get("news") or {}).get("results") or []
        return cls(
            query=query,
            web=[WebResult.model_validate(item) for item in web],
            news=[NewsResult.model_validate(item) for item in news],
        )
