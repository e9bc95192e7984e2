"""
Error taxonomy for the article like subsystem.

Every failure coming out of the counter store or the like set is turned into
one of these before it reaches a route.
"""

from fastapi import status


class LikeError(Exception):
    """Base class for like/favorite failures"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "like_error"
    public_message: str = "No se pudo actualizar el contador de favoritos."

    def __init__(self, message: str = "", *, slug: str | None = None):
        super().__init__(message or self.public_message)
        self.slug = slug


class AuthRequiredError(LikeError):
    """No authenticated identity; the user must sign in first"""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "auth_required"
    public_message = "Inicia sesión para marcar artículos como destacados."


class TransientStoreError(LikeError):
    """Network failure or contention exhaustion; safe to retry by re-toggling"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "transient_store_error"


class PersistenceError(LikeError):
    """Referential failure, e.g. the user document does not exist"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "persistence_error"
    public_message = "Ocurrió un error. Inténtalo más tarde."


class ArticleNotFoundError(LikeError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "article_not_found"
    public_message = "Artículo no encontrado."
