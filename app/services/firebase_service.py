"""
Firebase service for Firestore, Realtime Database, Storage and Authentication
"""

from __future__ import annotations
import asyncio
import json
import logging
import os
from datetime import datetime, UTC, timedelta
from typing import Optional, Dict, Any, List

import firebase_admin
from firebase_admin import credentials, firestore, db as firebase_db, auth as firebase_auth

from app.config import settings
from app.models.article import (
    Article,
    ArticleStatus,
    firestore_article_to_model,
)
from app.models.user import User, firestore_user_to_model, user_model_to_firestore
from app.utils.text import slugify, unique_slug

logger = logging.getLogger(__name__)

ARTICLES = "articles"
USERS = "users"


class FirebaseService:
    """Service for Firebase operations"""

    _instance = None
    _initialized = False

    def __new__(cls):
        """Singleton pattern to ensure only one Firebase instance"""
        if cls._instance is None:
            cls._instance = super(FirebaseService, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        # The SDK is initialized on first use so that importing the app
        # (tests, scripts) does not require credentials.
        if not hasattr(self, "_db"):
            self._db = None

    def _ensure_initialized(self):
        if not FirebaseService._initialized:
            self._initialize_firebase()
            self._db = firestore.client()
            FirebaseService._initialized = True

    @property
    def db(self):
        """Firestore client"""
        self._ensure_initialized()
        return self._db

    def rtdb_reference(self, path: str):
        """Realtime Database reference for `path`"""
        self._ensure_initialized()
        return firebase_db.reference(path)

    def _initialize_firebase(self):
        """Initialize Firebase Admin SDK with credentials"""
        try:
            # Check if already initialized
            firebase_admin.get_app()
            logger.info("Firebase already initialized")
            return
        except ValueError:
            pass

        options = {}
        if settings.FIREBASE_STORAGE_BUCKET:
            options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET
        if settings.FIREBASE_DATABASE_URL:
            options["databaseURL"] = settings.FIREBASE_DATABASE_URL

        try:
            if settings.DEV_MODE and settings.FIREBASE_EMULATOR_HOST:
                # Use emulators for development
                os.environ["FIRESTORE_EMULATOR_HOST"] = settings.FIREBASE_EMULATOR_HOST
                if settings.FIREBASE_DATABASE_EMULATOR_HOST:
                    os.environ["FIREBASE_DATABASE_EMULATOR_HOST"] = settings.FIREBASE_DATABASE_EMULATOR_HOST
                firebase_admin.initialize_app(options=options or None)
                logger.info("Firebase initialized with emulator: %s",
                            settings.FIREBASE_EMULATOR_HOST)
                return

            if settings.FIREBASE_CREDENTIALS_JSON:
                try:
                    cred = credentials.Certificate(
                        json.loads(settings.FIREBASE_CREDENTIALS_JSON))
                    logger.info(
                        "Firebase initialized with credentials from FIREBASE_CREDENTIALS_JSON")
                except json.JSONDecodeError as e:
                    logger.error("Error parsing FIREBASE_CREDENTIALS_JSON: %s", e)
                    raise
            else:
                # Fallback to file path
                cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
                logger.info("Firebase initialized with credentials from %s",
                            settings.FIREBASE_CREDENTIALS_PATH)

            firebase_admin.initialize_app(cred, options)
            logger.info("Firebase Admin SDK initialization successful.")
        except Exception as e:
            logger.error("Firebase Admin SDK initialization failed: %s", e)
            raise  # Do not run with a broken Firebase setup

    # ============================================
    # USER OPERATIONS
    # ============================================

    async def create_user_profile(
        self,
        uid: str,
        email: Optional[str],
        username: str = "",
        photo_url: Optional[str] = None,
    ) -> User:
        """
        Create the Firestore profile document for an authenticated user.

        The like set starts empty. An existing profile is returned untouched so
        that repeated sign-ups never wipe the user's likes.
        """
        user_ref = self.db.collection(USERS).document(uid)
        doc = await asyncio.to_thread(user_ref.get)
        if doc.exists:
            return firestore_user_to_model(doc.to_dict(), uid)

        now = datetime.now(UTC)
        user = User(
            uid=uid,
            email=email,
            username=username or (email.split("@")[0] if email else "Usuario"),
            photo_url=photo_url,
            liked_article_slugs=[],
            created_at=now,
            updated_at=now,
        )
        try:
            await asyncio.to_thread(user_ref.set, user_model_to_firestore(user))
        except Exception as e:
            logger.error("Failed to save user %s to Firestore: %s", uid, e)
            raise Exception(f"Error saving user to Firestore: {e}")
        return user

    async def get_user_by_uid(self, uid: str) -> Optional[User]:
        """
        Get user profile by UID from Firestore

        Returns:
            User object or None if the profile document does not exist
        """
        doc = await asyncio.to_thread(self.db.collection(USERS).document(uid).get)
        if not doc.exists:
            return None
        return firestore_user_to_model(doc.to_dict(), uid)

    async def update_user(self, uid: str, data: Dict[str, Any]) -> Optional[User]:
        """
        Update user profile fields in Firestore

        Args:
            uid: User's unique identifier
            data: Dictionary of fields to update (snake_case or camelCase)

        Returns:
            Updated User object
        """
        key_map = {
            "username": "username",
            "photo_url": "photoURL",
            "photoURL": "photoURL",
        }
        normalized: Dict[str, Any] = {}
        for k, v in (data or {}).items():
            mapped = key_map.get(k)
            if mapped:
                normalized[mapped] = v
        normalized["updatedAt"] = datetime.now(UTC)

        user_ref = self.db.collection(USERS).document(uid)
        await asyncio.to_thread(user_ref.update, normalized)

        # Keep Firebase Auth in sync with the visible name
        if "username" in normalized:
            await asyncio.to_thread(
                firebase_auth.update_user, uid, display_name=normalized["username"])

        return await self.get_user_by_uid(uid)

    async def delete_user(self, uid: str) -> bool:
        """
        Delete user from Firebase Authentication and Firestore. The like set
        goes away with the profile document.
        """
        try:
            await asyncio.to_thread(firebase_auth.delete_user, uid)
        except firebase_auth.UserNotFoundError:
            logger.warning("Auth user %s already gone", uid)
        await asyncio.to_thread(self.db.collection(USERS).document(uid).delete)
        return True

    async def verify_id_token(self, id_token: str) -> Dict[str, Any]:
        """
        Verify Firebase ID token

        Returns:
            Decoded token claims
        """
        self._ensure_initialized()
        return await asyncio.to_thread(firebase_auth.verify_id_token, id_token)

    # ============================================
    # ARTICLE OPERATIONS
    # ============================================

    async def _query_articles(self, field: str, value: Any, limit: Optional[int] = None) -> List[Article]:
        query = self.db.collection(ARTICLES).where(field, "==", value)
        if limit:
            query = query.limit(limit)

        def _fetch():
            return [(doc.id, doc.to_dict()) for doc in query.stream()]

        articles = []
        for doc_id, data in await asyncio.to_thread(_fetch):
            try:
                articles.append(firestore_article_to_model(data, doc_id))
            except Exception as e:
                logger.warning("Skipping malformed article %s: %s", doc_id, e)
        return articles

    async def list_published_articles(self) -> List[Article]:
        """Published articles in store order"""
        return await self._query_articles("status", ArticleStatus.PUBLISHED.value)

    async def list_draft_articles(self) -> List[Article]:
        return await self._query_articles("status", ArticleStatus.DRAFT.value)

    async def get_article_by_slug(self, slug: str) -> Optional[Article]:
        found = await self._query_articles("slug", slug, limit=1)
        return found[0] if found else None

    async def get_article(self, article_id: str) -> Optional[Article]:
        doc = await asyncio.to_thread(self.db.collection(ARTICLES).document(article_id).get)
        if not doc.exists:
            return None
        return firestore_article_to_model(doc.to_dict(), doc.id)

    async def _existing_slugs(self) -> List[str]:
        def _fetch():
            return [doc.to_dict().get("slug") for doc in self.db.collection(ARTICLES).stream()]

        return [s for s in await asyncio.to_thread(_fetch) if s]

    async def create_article(self, data: Dict[str, Any], author_id: Optional[str]) -> Article:
        """
        Create an article from camelCase fields. A unique slug is derived
        from the title; the baseline favorite count starts at zero.
        """
        coll = self.db.collection(ARTICLES)
        doc_ref = coll.document()
        now = datetime.now(UTC)
        status = ArticleStatus(data.get("status", ArticleStatus.DRAFT))

        article_data = {
            **data,
            "slug": unique_slug(data["title"], await self._existing_slugs()),
            "favoriteCount": 0,
            "status": status.value,
            "authorId": author_id,
            "createdAt": now,
            "updatedAt": now,
            "publishedAt": now if status == ArticleStatus.PUBLISHED else None,
        }
        await asyncio.to_thread(doc_ref.set, article_data)
        logger.info("Created article %s (%s)", doc_ref.id, article_data["slug"])
        return firestore_article_to_model(article_data, doc_ref.id)

    async def update_article(self, article_id: str, data: Dict[str, Any]) -> Optional[Article]:
        """
        Update display fields of an article.

        The slug follows the title only while the article has never been
        published; afterwards it is frozen because it keys the counter.
        """
        existing = await self.get_article(article_id)
        if existing is None:
            return None

        update_data = {k: v for k, v in data.items() if k not in {"slug", "favoriteCount", "status"}}
        new_title = update_data.get("title")
        if new_title and new_title != existing.title and not existing.slug_frozen:
            if slugify(new_title) != slugify(existing.title):
                others = [s for s in await self._existing_slugs() if s != existing.slug]
                update_data["slug"] = unique_slug(new_title, others)
        update_data["updatedAt"] = datetime.now(UTC)

        doc_ref = self.db.collection(ARTICLES).document(article_id)
        await asyncio.to_thread(doc_ref.update, update_data)
        return await self.get_article(article_id)

    async def set_article_status(self, article_id: str, status: ArticleStatus) -> Optional[Article]:
        existing = await self.get_article(article_id)
        if existing is None:
            return None
        now = datetime.now(UTC)
        update_data: Dict[str, Any] = {"status": status.value, "updatedAt": now}
        if status == ArticleStatus.PUBLISHED and existing.published_at is None:
            update_data["publishedAt"] = now
        doc_ref = self.db.collection(ARTICLES).document(article_id)
        await asyncio.to_thread(doc_ref.update, update_data)
        return await self.get_article(article_id)

    async def delete_article(self, article_id: str) -> Optional[Article]:
        """Delete the article document and return what was deleted"""
        existing = await self.get_article(article_id)
        if existing is None:
            return None
        await asyncio.to_thread(self.db.collection(ARTICLES).document(article_id).delete)
        logger.info("Deleted article %s (%s)", article_id, existing.slug)
        return existing

    async def seed_articles(self, documents: Dict[str, Dict[str, Any]]) -> int:
        """Write documents keyed by id that are not in Firestore yet"""
        coll = self.db.collection(ARTICLES)
        created = 0
        now = datetime.now(UTC)
        for doc_id, data in documents.items():
            ref = coll.document(doc_id)
            if (await asyncio.to_thread(ref.get)).exists:
                continue
            payload = {"createdAt": now, "updatedAt": now, **data}
            if data.get("status") == ArticleStatus.PUBLISHED.value:
                payload.setdefault("publishedAt", now)
            await asyncio.to_thread(ref.set, payload)
            created += 1
        return created

    # ============================================
    # STORAGE HELPERS
    # ============================================

    async def upload_file(self, path: str, content: bytes, content_type: str) -> str:
        """Upload bytes to Firebase Storage and return a usable URL.

        Tries to make the object public and return `public_url`. If signing is
        available will attempt to generate a signed URL, otherwise returns a
        gs:// path as a fallback.
        """
        self._ensure_initialized()
        from firebase_admin import storage as fb_storage

        def _upload():
            bucket = fb_storage.bucket()
            blob = bucket.blob(path)
            blob.upload_from_string(content, content_type=content_type)
            try:
                blob.make_public()
                return blob.public_url
            except Exception:
                try:
                    return blob.generate_signed_url(expiration=timedelta(hours=1))
                except Exception:
                    return f"gs://{bucket.name}/{path}"

        try:
            return await asyncio.to_thread(_upload)
        except Exception as e:
            raise Exception(f"Storage upload failed: {str(e)}")


# Global Firebase service instance
firebase_service = FirebaseService()
