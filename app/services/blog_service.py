"""Blog service for business logic."""

from uuid import UUID

import structlog
from fastapi import UploadFile
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.core.redis_client import CacheManager
from app.core.storage import MediaStorage
from app.models.blogs import blogs
from app.schemas.blogs import BlogCreate, BlogUpdate

logger = structlog.get_logger(__name__)

BLOG_LIST_CACHE_KEY = "blog:list"


class BlogService:
    """Service for blog posts."""

    BLOG_CACHE_TTL = 900
    BLOG_LIST_CACHE_TTL = 300

    IMAGE_FOLDER = "blogs"

    def __init__(self, storage: MediaStorage, cache_manager: CacheManager | None = None):
        """Initialize service with media storage and optional cache manager."""
        self.storage = storage
        self.cache = cache_manager

    def _invalidate(self, blog_id: UUID | None = None) -> None:
        if not self.cache:
            return
        if blog_id is not None:
            self.cache.delete(f"blog:{blog_id}")
        self.cache.delete(BLOG_LIST_CACHE_KEY)

    def _discard_image(self, image_url: str | None, **context: object) -> None:
        if not image_url:
            return
        try:
            self.storage.delete(image_url)
        except OSError as e:
            logger.warning("media_delete_failed", image_url=image_url, error=str(e), **context)

    async def create_blog(
        self,
        db: AsyncSession,
        blog_data: BlogCreate,
        image: UploadFile | None = None,
        created_by: str | None = None,
    ) -> dict:
        """Create a blog post, uploading its illustration first."""
        values = blog_data.model_dump()
        values["created_by"] = created_by

        if image is not None:
            values["image_url"] = await self.storage.save(image, self.IMAGE_FOLDER)

        try:
            result = await db.execute(blogs.insert().values(**values).returning(blogs))
            blog = result.mappings().first()
            await db.commit()
        except Exception:
            await db.rollback()
            self._discard_image(values.get("image_url"))
            raise

        self._invalidate()
        logger.info("blog_created", blog_id=str(blog["id"]))

        return dict(blog)

    async def get_blog_by_id(self, db: AsyncSession, blog_id: UUID) -> dict:
        """Get a blog post by ID.

        Raises:
            NotFoundException: If the post does not exist
        """
        if self.cache:
            cached = self.cache.get_json(f"blog:{blog_id}")
            if cached:
                return cached

        result = await db.execute(select(blogs).where(blogs.c.id == blog_id))
        blog = result.mappings().first()

        if not blog:
            raise NotFoundException("Blog not found")

        blog_dict = dict(blog)
        if self.cache:
            self.cache.set_json(f"blog:{blog_id}", blog_dict, ttl=self.BLOG_CACHE_TTL)

        return blog_dict

    async def get_blogs(self, db: AsyncSession) -> list[dict]:
        """Get all blog posts, newest first."""
        if self.cache:
            cached = self.cache.get_json(BLOG_LIST_CACHE_KEY)
            if cached is not None:
                return cached

        result = await db.execute(select(blogs).order_by(blogs.c.created_at.desc()))
        blog_list = [dict(b) for b in result.mappings().all()]

        if self.cache:
            self.cache.set_json(BLOG_LIST_CACHE_KEY, blog_list, ttl=self.BLOG_LIST_CACHE_TTL)

        return blog_list

    async def update_blog(
        self,
        db: AsyncSession,
        blog_id: UUID,
        blog_data: BlogUpdate,
        image: UploadFile | None = None,
    ) -> dict:
        """Update a blog post; a new illustration replaces the stored one.

        Raises:
            NotFoundException: If the post does not exist
        """
        result = await db.execute(select(blogs).where(blogs.c.id == blog_id))
        existing = result.mappings().first()
        if not existing:
            raise NotFoundException("Blog not found")

        update_values = blog_data.model_dump(exclude_unset=True, exclude_none=True)

        if image is not None:
            update_values["image_url"] = await self.storage.save(image, self.IMAGE_FOLDER)

        if not update_values:
            return dict(existing)

        try:
            result = await db.execute(
                update(blogs).where(blogs.c.id == blog_id).values(**update_values).returning(blogs)
            )
            updated_blog = result.mappings().first()
            await db.commit()
        except Exception:
            await db.rollback()
            self._discard_image(update_values.get("image_url"), blog_id=str(blog_id))
            raise

        if image is not None:
            self._discard_image(existing["image_url"], blog_id=str(blog_id))

        self._invalidate(blog_id)
        logger.info("blog_updated", blog_id=str(blog_id), fields=sorted(update_values))

        return dict(updated_blog)

    async def delete_blog(self, db: AsyncSession, blog_id: UUID) -> None:
        """Delete a blog post and, best effort, its stored illustration.

        Raises:
            NotFoundException: If the post does not exist
        """
        result = await db.execute(
            delete(blogs).where(blogs.c.id == blog_id).returning(blogs.c.image_url)
        )
        deleted = result.first()

        if deleted is None:
            await db.rollback()
            raise NotFoundException("Blog not found")

        await db.commit()

        self._discard_image(deleted.image_url, blog_id=str(blog_id))
        self._invalidate(blog_id)
        logger.info("blog_deleted", blog_id=str(blog_id))
