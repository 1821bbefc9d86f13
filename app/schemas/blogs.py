"""Blog schemas for request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.base import CamelModel


class BlogBase(CamelModel):
    """Base schema for blog posts."""

    title: str = Field(..., min_length=1, max_length=300)
    short_description: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1, max_length=200)

    @field_validator("title", "short_description", "author")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Trim surrounding whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class BlogCreate(BlogBase):
    """Schema for creating a blog post."""


class BlogUpdate(CamelModel):
    """Schema for updating a blog post."""

    title: str | None = Field(None, min_length=1, max_length=300)
    short_description: str | None = Field(None, min_length=1)
    content: str | None = Field(None, min_length=1)
    author: str | None = Field(None, min_length=1, max_length=200)

    @field_validator("title", "short_description", "author")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        """Trim surrounding whitespace when a value is given."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class BlogResponse(BlogBase):
    """Blog response schema."""

    id: UUID = Field(..., alias="_id")
    image_url: str | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
