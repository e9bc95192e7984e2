"""
Article request/response schemas
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from app.models.article import Article, ArticleContent, ArticleStatus


class ArticleCreateSchema(BaseModel):
    title: str = Field(..., min_length=3, max_length=300)
    short_description: str = Field(..., max_length=500, alias="shortDescription")
    category: str = Field(..., description="Category id or display name")
    image_url: str = Field("", alias="imageUrl")
    image_hint: str = Field("", alias="imageHint")
    content: ArticleContent
    read_more_link: Optional[str] = Field(None, alias="readMoreLink")
    status: ArticleStatus = ArticleStatus.DRAFT

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Uso del cinturón de seguridad",
                "shortDescription": "Por qué y cuándo es obligatorio.",
                "category": "obligaciones",
                "imageUrl": "https://picsum.photos/seed/seatbelt/600/400",
                "imageHint": "cinturon auto",
                "content": {
                    "introduction": "El cinturón salva vidas.",
                    "points": ["Obligatorio para todos los ocupantes."],
                    "conclusion": "Abróchate siempre.",
                },
                "status": "published",
            }
        }
    )


class ArticleUpdateSchema(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=300)
    short_description: Optional[str] = Field(None, max_length=500, alias="shortDescription")
    category: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    image_hint: Optional[str] = Field(None, alias="imageHint")
    content: Optional[ArticleContent] = None
    read_more_link: Optional[str] = Field(None, alias="readMoreLink")

    model_config = ConfigDict(populate_by_name=True)


class ArticleResponse(BaseModel):
    article_id: str = Field(..., alias="id")
    slug: str
    title: str
    short_description: str = Field("", alias="shortDescription")
    category: str
    image_url: str = Field("", alias="imageUrl")
    image_hint: str = Field("", alias="imageHint")
    content: ArticleContent
    read_more_link: Optional[str] = Field(None, alias="readMoreLink")
    status: ArticleStatus
    author_id: Optional[str] = Field(None, alias="authorId")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    # live aggregate count, falls back to the stored baseline
    favorite_count: int = Field(0, alias="favoriteCount")
    liked_by_me: bool = Field(False, alias="likedByMe")
    like_state: str = Field("unliked", alias="likeState")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_article(cls, article: Article, favorite_count: Optional[int] = None,
                     liked_by_me: bool = False, like_state: str = "unliked") -> "ArticleResponse":
        data = article.model_dump()
        data.pop("baseline_favorite_count", None)
        data.pop("published_at", None)
        if favorite_count is None:
            favorite_count = max(0, article.baseline_favorite_count)
        return cls(**data, favorite_count=favorite_count,
                   liked_by_me=liked_by_me, like_state=like_state)


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    total: int

    model_config = ConfigDict(populate_by_name=True)


class LikeResponse(BaseModel):
    slug: str
    liked: bool
    total_likes: int = Field(..., alias="totalLikes")
    accepted: bool = True

    model_config = ConfigDict(populate_by_name=True)


class ImageUploadResponse(BaseModel):
    image_url: str = Field(..., alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True)
