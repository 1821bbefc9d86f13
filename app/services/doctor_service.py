"""Doctor service for business logic."""

from uuid import UUID

import structlog
from fastapi import UploadFile
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.core.redis_client import CacheManager
from app.core.storage import MediaStorage
from app.models.doctors import doctors
from app.schemas.doctors import DoctorCreate, DoctorUpdate

logger = structlog.get_logger(__name__)


class DoctorService:
    """Service for doctor operations."""

    # Cache TTL in seconds
    DOCTOR_CACHE_TTL = 900  # 15 minutes for individual doctors
    DOCTOR_LIST_CACHE_TTL = 300  # 5 minutes for lists

    IMAGE_FOLDER = "doctors"

    def __init__(self, storage: MediaStorage, cache_manager: CacheManager | None = None):
        """Initialize service with media storage and optional cache manager."""
        self.storage = storage
        self.cache = cache_manager

    @staticmethod
    def _get_doctor_cache_key(doctor_id: UUID) -> str:
        """Generate cache key for doctor."""
        return f"doctor:{doctor_id}"

    def _invalidate(self, doctor_id: UUID | None = None) -> None:
        if not self.cache:
            return
        if doctor_id is not None:
            self.cache.delete(self._get_doctor_cache_key(doctor_id))
        self.cache.delete_pattern("doctor:list:*")

    def _discard_image(self, image_url: str | None, **context: object) -> None:
        """Remove a stored image; failures are logged and never raised."""
        if not image_url:
            return
        try:
            self.storage.delete(image_url)
        except OSError as e:
            logger.warning(
                "media_delete_failed",
                image_url=image_url,
                **context,
                error=str(e),
            )

    async def create_doctor(
        self,
        db: AsyncSession,
        doctor_data: DoctorCreate,
        image: UploadFile | None = None,
        created_by: str | None = None,
    ) -> dict:
        """Create a new doctor profile, uploading its photo first."""
        values = doctor_data.model_dump()
        values["created_by"] = created_by

        if image is not None:
            values["image_url"] = await self.storage.save(image, self.IMAGE_FOLDER)

        query = doctors.insert().values(**values).returning(doctors)

        try:
            result = await db.execute(query)
            doctor = result.mappings().first()
            await db.commit()
        except Exception:
            await db.rollback()
            self._discard_image(values.get("image_url"))
            raise

        self._invalidate()
        logger.info("doctor_created", doctor_id=str(doctor["id"]))

        return dict(doctor)

    async def get_doctor_by_id(self, db: AsyncSession, doctor_id: UUID) -> dict:
        """Get doctor by ID with caching.

        Raises:
            NotFoundException: If the doctor does not exist
        """
        if self.cache:
            cached = self.cache.get_json(self._get_doctor_cache_key(doctor_id))
            if cached:
                return cached

        query = select(doctors).where(doctors.c.id == doctor_id)
        result = await db.execute(query)
        doctor = result.mappings().first()

        if not doctor:
            raise NotFoundException("Doctor not found")

        doctor_dict = dict(doctor)

        if self.cache:
            self.cache.set_json(
                self._get_doctor_cache_key(doctor_id),
                doctor_dict,
                ttl=self.DOCTOR_CACHE_TTL,
            )

        return doctor_dict

    async def get_doctors(self, db: AsyncSession, limit: int | None = None) -> list[dict]:
        """Get all doctors in creation order, capped at ``limit`` when positive."""
        cache_key = f"doctor:list:{limit or 0}"
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached is not None:
                return cached

        query = select(doctors).order_by(doctors.c.created_at)
        if limit and limit > 0:
            query = query.limit(limit)

        result = await db.execute(query)
        doctor_list = [dict(d) for d in result.mappings().all()]

        if self.cache:
            self.cache.set_json(cache_key, doctor_list, ttl=self.DOCTOR_LIST_CACHE_TTL)

        return doctor_list

    async def update_doctor(
        self,
        db: AsyncSession,
        doctor_id: UUID,
        doctor_data: DoctorUpdate,
        image: UploadFile | None = None,
    ) -> dict:
        """Update doctor information; a new photo replaces the stored one.

        Raises:
            NotFoundException: If the doctor does not exist
        """
        result = await db.execute(select(doctors).where(doctors.c.id == doctor_id))
        existing = result.mappings().first()
        if not existing:
            raise NotFoundException("Doctor not found")

        update_values = doctor_data.model_dump(exclude_unset=True)

        if image is not None:
            update_values["image_url"] = await self.storage.save(image, self.IMAGE_FOLDER)

        if not update_values:
            return dict(existing)

        query = (
            update(doctors)
            .where(doctors.c.id == doctor_id)
            .values(**update_values)
            .returning(doctors)
        )

        try:
            result = await db.execute(query)
            updated_doctor = result.mappings().first()
            await db.commit()
        except Exception:
            await db.rollback()
            self._discard_image(update_values.get("image_url"), doctor_id=str(doctor_id))
            raise

        if image is not None:
            self._discard_image(existing["image_url"], doctor_id=str(doctor_id))

        self._invalidate(doctor_id)
        logger.info("doctor_updated", doctor_id=str(doctor_id), fields=sorted(update_values))

        return dict(updated_doctor)

    async def delete_doctor(self, db: AsyncSession, doctor_id: UUID) -> None:
        """Delete a doctor and, best effort, its stored photo.

        Raises:
            NotFoundException: If the doctor does not exist
        """
        query = delete(doctors).where(doctors.c.id == doctor_id).returning(doctors.c.image_url)
        result = await db.execute(query)
        deleted = result.first()

        if deleted is None:
            await db.rollback()
            raise NotFoundException("Doctor not found")

        await db.commit()

        self._discard_image(deleted.image_url, doctor_id=str(doctor_id))
        self._invalidate(doctor_id)
        logger.info("doctor_deleted", doctor_id=str(doctor_id))
