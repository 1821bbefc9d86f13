"""Blog endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.api.v1.forms import build_form_model
from app.dependencies import (
    CacheManagerDep,
    CurrentIdentity,
    DatabaseSession,
    MediaStorageDep,
    get_current_identity,
)
from app.schemas.base import MessageResponse
from app.schemas.blogs import BlogCreate, BlogResponse, BlogUpdate
from app.services.blog_service import BlogService

router = APIRouter()


def get_blog_service(storage: MediaStorageDep, cache_manager: CacheManagerDep) -> BlogService:
    """Get blog service instance."""
    return BlogService(storage=storage, cache_manager=cache_manager)


@router.get("", response_model=list[BlogResponse])
async def list_blogs(
    db: DatabaseSession,
    blog_service: BlogService = Depends(get_blog_service),
):
    """List blog posts, newest first."""
    blog_list = await blog_service.get_blogs(db)
    return [BlogResponse.model_validate(b) for b in blog_list]


@router.get("/{blog_id}", response_model=BlogResponse)
async def get_blog(
    blog_id: UUID,
    db: DatabaseSession,
    blog_service: BlogService = Depends(get_blog_service),
):
    """Get a blog post by ID."""
    return await blog_service.get_blog_by_id(db, blog_id)


@router.post("", response_model=BlogResponse, status_code=status.HTTP_201_CREATED)
async def create_blog(
    db: DatabaseSession,
    identity: CurrentIdentity,
    title: str = Form(...),
    short_description: str = Form(..., alias="shortDescription"),
    content: str = Form(...),
    author: str = Form(...),
    image: UploadFile | None = File(None, alias="imageUrl"),
    blog_service: BlogService = Depends(get_blog_service),
):
    """
    Create a blog post.

    Multipart form; the optional `imageUrl` file is stored and its URL saved
    on the post.
    """
    blog_data = build_form_model(
        BlogCreate,
        {
            "title": title,
            "shortDescription": short_description,
            "content": content,
            "author": author,
        },
    )

    return await blog_service.create_blog(
        db,
        blog_data,
        image=image,
        created_by=identity["uid"] if identity else None,
    )


@router.put(
    "/{blog_id}",
    response_model=BlogResponse,
    dependencies=[Depends(get_current_identity)],
)
async def update_blog(
    blog_id: UUID,
    db: DatabaseSession,
    title: str | None = Form(None),
    short_description: str | None = Form(None, alias="shortDescription"),
    content: str | None = Form(None),
    author: str | None = Form(None),
    image: UploadFile | None = File(None, alias="imageUrl"),
    blog_service: BlogService = Depends(get_blog_service),
):
    """Update a blog post. Only provided fields are changed."""
    blog_data = build_form_model(
        BlogUpdate,
        {
            "title": title,
            "shortDescription": short_description,
            "content": content,
            "author": author,
        },
    )

    return await blog_service.update_blog(db, blog_id, blog_data, image=image)


@router.delete(
    "/{blog_id}",
    response_model=MessageResponse,
    dependencies=[Depends(get_current_identity)],
)
async def delete_blog(
    blog_id: UUID,
    db: DatabaseSession,
    blog_service: BlogService = Depends(get_blog_service),
):
    """Delete a blog post and its stored illustration."""
    await blog_service.delete_blog(db, blog_id)
    return MessageResponse(message="Blog deleted successfully")
