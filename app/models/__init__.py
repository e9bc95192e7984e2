from app.models.user import User, UserRole
from app.models.article import Article, ArticleContent, ArticleStatus
from app.models.catalog import Category, TrafficInfraction

__all__ = [
    "User",
    "UserRole",
    "Article",
    "ArticleContent",
    "ArticleStatus",
    "Category",
    "TrafficInfraction",
]
