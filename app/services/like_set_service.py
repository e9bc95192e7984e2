"""
Per-user like sets stored on the Firestore profile document.

Field: ``users/{uid}.likedArticleSlugs``, an array written only with
``ArrayUnion`` / ``ArrayRemove`` so it behaves as a set.
"""

import asyncio
import logging
from datetime import datetime, UTC
from typing import Optional, Set

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions

from app.exceptions import PersistenceError, TransientStoreError
from app.services.firebase_service import FirebaseService, firebase_service, USERS

logger = logging.getLogger(__name__)

LIKED_FIELD = "likedArticleSlugs"


class LikeSetService:
    """Reads and updates the like set of a single user"""

    def __init__(self, firebase: Optional[FirebaseService] = None):
        self.firebase = firebase or firebase_service

    def _user_ref(self, user_id: str):
        return self.firebase.db.collection(USERS).document(user_id)

    async def get_liked_slugs(self, user_id: str) -> Set[str]:
        """
        Current like set of the user.

        A missing user document or a missing field means "no likes", never
        an error.
        """
        try:
            doc = await asyncio.to_thread(self._user_ref(user_id).get)
        except gcp_exceptions.GoogleAPICallError as e:
            raise TransientStoreError(f"Could not read likes of {user_id}: {e}") from e
        if not doc.exists:
            return set()
        slugs = (doc.to_dict() or {}).get(LIKED_FIELD) or []
        return {s for s in slugs if isinstance(s, str)}

    async def set_membership(self, user_id: str, slug: str, present: bool) -> None:
        """
        Add or remove ``slug`` from the user's like set.

        Idempotent at the data level. Fails with PersistenceError when the
        user document does not exist.
        """
        op = firestore.ArrayUnion([slug]) if present else firestore.ArrayRemove([slug])
        try:
            await asyncio.to_thread(
                self._user_ref(user_id).update,
                {LIKED_FIELD: op, "updatedAt": datetime.now(UTC)},
            )
        except gcp_exceptions.NotFound as e:
            raise PersistenceError(f"User {user_id} has no profile document", slug=slug) from e
        except gcp_exceptions.GoogleAPICallError as e:
            raise TransientStoreError(f"Could not update likes of {user_id}: {e}", slug=slug) from e
        logger.debug("Like set %s: %s %s", user_id, "+" if present else "-", slug)

    async def remove_slug_everywhere(self, slug: str) -> int:
        """
        Best-effort removal of a deleted article's slug from every like set.

        Returns:
            Number of user documents updated
        """
        query = self.firebase.db.collection(USERS).where(LIKED_FIELD, "array_contains", slug)

        def _cleanup():
            touched = 0
            for doc in query.stream():
                doc.reference.update({LIKED_FIELD: firestore.ArrayRemove([slug])})
                touched += 1
            return touched

        try:
            touched = await asyncio.to_thread(_cleanup)
        except gcp_exceptions.GoogleAPICallError as e:
            logger.warning("Like set cleanup for %s incomplete: %s", slug, e)
            return 0
        logger.info("Removed %s from %d like sets", slug, touched)
        return touched


# Global like set service instance
like_set_service = LikeSetService()
