"""
Article model and Firestore conversion helpers
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class ArticleContent(BaseModel):
    introduction: str
    points: list[str] = Field(default_factory=list)
    conclusion: Optional[str] = None


class Article(BaseModel):
    """
    Traffic-law article

    Collection: articles/
    Document ID: article_id

    The slug joins the article with its favorite counter in the Realtime
    Database and with the users' liked sets. It is frozen once the article
    has been published.
    """

    article_id: str = Field(..., alias="id")
    slug: str
    title: str
    short_description: str = Field("", alias="shortDescription")
    category: str = ""
    image_url: str = Field("", alias="imageUrl")
    image_hint: str = Field("", alias="imageHint")
    content: ArticleContent
    read_more_link: Optional[str] = Field(None, alias="readMoreLink")
    baseline_favorite_count: int = Field(0, alias="favoriteCount")
    status: ArticleStatus = ArticleStatus.DRAFT
    author_id: Optional[str] = Field(None, alias="authorId")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    published_at: Optional[datetime] = Field(None, alias="publishedAt")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED

    @property
    def slug_frozen(self) -> bool:
        return self.is_published or self.published_at is not None


def firestore_article_to_model(doc: dict, doc_id: str) -> Article:
    return Article.model_validate({**doc, "id": doc_id})
