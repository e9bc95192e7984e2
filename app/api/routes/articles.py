"""Articles API routes"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse

from app.dependencies import get_current_user, get_optional_user, require_admin
from app.models.article import Article, ArticleStatus
from app.models.catalog import CATEGORIES, Category, category_name
from app.models.user import User
from app.schemas.article import (
    ArticleCreateSchema,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdateSchema,
    ImageUploadResponse,
    LikeResponse,
)
from app.services.counter_store import counter_store
from app.services.firebase_service import firebase_service
from app.services.like_coordinator import LikeCoordinator, RankedArticle, like_sessions
from app.services.like_set_service import like_set_service
from app.utils.sse import event_stream

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/articles", tags=["Articles"])

MAX_IMAGE_BYTES = 5 * 1024 * 1024


@asynccontextmanager
async def _coordinator_for(user: Optional[User], live: bool = False):
    """The user's session for the duration of the block, or a throwaway one for anonymous visitors"""
    if user is not None:
        async with like_sessions.session(user.uid, live=live) as coordinator:
            yield coordinator
    else:
        async with like_sessions.anonymous(live=live) as coordinator:
            yield coordinator


def _ranked_response(item: RankedArticle) -> ArticleResponse:
    return ArticleResponse.from_article(
        item.article,
        favorite_count=item.favorite_count,
        liked_by_me=item.liked_by_me,
        like_state=item.state.value,
    )


def _ranked_payload(items: list[RankedArticle]) -> list[dict]:
    return [_ranked_response(i).model_dump(by_alias=True, mode="json") for i in items]


async def _get_or_404(article_id: str) -> Article:
    article = await firebase_service.get_article(article_id)
    if article is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    return article


@router.get("/", response_model=ArticleListResponse)
async def list_articles(current_user: Optional[User] = Depends(get_optional_user)):
    """Published articles ranked for the caller: own likes first, then by favorites"""
    async with _coordinator_for(current_user) as coordinator:
        ranked = coordinator.sorted_articles()
    return ArticleListResponse(
        articles=[_ranked_response(i) for i in ranked],
        total=len(ranked),
    )


@router.get("/stream")
async def stream_articles(current_user: Optional[User] = Depends(get_optional_user)):
    """SSE: the ranked list again whenever a count, a like or the list changes"""

    async def ranked_updates():
        async with _coordinator_for(current_user, live=True) as coordinator:
            async for ranked in coordinator.watch():
                yield ranked

    return StreamingResponse(
        event_stream(ranked_updates(), encode=_ranked_payload),
        media_type="text/event-stream",
    )


@router.get("/categories", response_model=list[Category])
async def list_categories():
    return CATEGORIES


@router.get("/drafts", response_model=ArticleListResponse)
async def list_drafts(current_user: User = Depends(require_admin)):
    drafts = await firebase_service.list_draft_articles()
    return ArticleListResponse(
        articles=[ArticleResponse.from_article(a) for a in drafts],
        total=len(drafts),
    )


@router.post("/images", response_model=ImageUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    current_user: User = Depends(require_admin),
):
    """Upload an article cover image to Cloud Storage"""
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload an image.")
    content = await file.read()
    if len(content) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 5MB)")

    extension = (file.filename or "").rsplit(".", 1)[-1].lower() if "." in (file.filename or "") else "img"
    path = f"article-images/{uuid.uuid4().hex}.{extension}"
    try:
        url = await firebase_service.upload_file(path, content, file.content_type)
    except Exception as e:
        logger.error("Image upload failed: %s", e)
        raise HTTPException(status_code=502, detail="Image upload failed")
    return ImageUploadResponse(image_url=url)


@router.get("/{slug}", response_model=ArticleResponse)
async def get_article(slug: str, current_user: Optional[User] = Depends(get_optional_user)):
    article = await firebase_service.get_article_by_slug(slug)
    if article is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")

    if not article.is_published:
        if current_user is None or not current_user.is_admin:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
        return ArticleResponse.from_article(article)

    if current_user is not None:
        async with like_sessions.session(current_user.uid) as coordinator:
            return ArticleResponse.from_article(
                article,
                favorite_count=coordinator.count_of(slug),
                liked_by_me=coordinator.is_liked_by_me(slug),
                like_state=coordinator.state_of(slug).value,
            )
    count = await counter_store.get(slug, article.baseline_favorite_count)
    return ArticleResponse.from_article(article, favorite_count=count)


@router.get("/{slug}/favorites/stream")
async def stream_favorites(slug: str):
    """SSE: live favorite count of one article"""
    article = await firebase_service.get_article_by_slug(slug)
    if article is None or not article.is_published:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")

    coordinator = LikeCoordinator(None)

    return StreamingResponse(
        event_stream(coordinator.live_count(slug), encode=lambda count: {"slug": slug, "count": count}),
        media_type="text/event-stream",
    )


@router.post("/{slug}/like", response_model=LikeResponse)
async def toggle_like(slug: str, current_user: User = Depends(get_current_user)):
    """
    Toggle the current user's like on an article.

    A toggle sent while the previous one for the same article is still in
    flight is ignored and answered with `accepted: false`.
    """
    async with like_sessions.session(current_user.uid) as coordinator:
        result = await coordinator.toggle_like(slug)
    return LikeResponse(slug=result.slug, liked=result.liked,
                        total_likes=result.count, accepted=result.accepted)


@router.post("/", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(payload: ArticleCreateSchema, current_user: User = Depends(require_admin)):
    data = payload.model_dump(by_alias=True, exclude_none=True)
    data["category"] = category_name(payload.category)
    data["status"] = payload.status.value
    article = await firebase_service.create_article(data, author_id=current_user.uid)
    if article.is_published:
        await like_sessions.articles_changed()
    return ArticleResponse.from_article(article)


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    payload: ArticleUpdateSchema,
    current_user: User = Depends(require_admin),
):
    await _get_or_404(article_id)
    data = payload.model_dump(by_alias=True, exclude_none=True)
    if payload.category is not None:
        data["category"] = category_name(payload.category)
    article = await firebase_service.update_article(article_id, data)
    if article is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    if article.is_published:
        await like_sessions.articles_changed()
    return ArticleResponse.from_article(article)


@router.post("/{article_id}/publish", response_model=ArticleResponse)
async def toggle_publish(article_id: str, current_user: User = Depends(require_admin)):
    """Move a draft to published or a published article back to drafts"""
    existing = await _get_or_404(article_id)
    new_status = ArticleStatus.DRAFT if existing.is_published else ArticleStatus.PUBLISHED
    article = await firebase_service.set_article_status(article_id, new_status)
    if article is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    await like_sessions.articles_changed()
    return ArticleResponse.from_article(article)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(article_id: str, current_user: User = Depends(require_admin)):
    """Delete an article; its counter and like set entries are cleaned up best effort"""
    await _get_or_404(article_id)
    deleted = await firebase_service.delete_article(article_id)
    if deleted is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")

    await counter_store.on_article_deleted(deleted.slug)
    await like_set_service.remove_slug_everywhere(deleted.slug)
    await like_sessions.articles_changed()
    return None
