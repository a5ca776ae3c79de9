"""Tale CRUD, discovery, engagement and generation endpoints."""

from typing import Optional

from fastapi import APIRouter, Query, status

from ..dependencies import CurrentPrincipal, Generation, OptionalCredential, Service
from ..models.enums import AgeRange, TaleSort, Visibility
from ..models.requests import CreateTaleRequest, GenerateTaleRequest, UpdateTaleRequest
from ..models.responses import (
    GenerateTaleResponse,
    LikesResponse,
    MessageResponse,
    TaleResponse,
)

router = APIRouter()


@router.post(
    "/",
    response_model=TaleResponse,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tale",
)
async def create_tale(request: CreateTaleRequest, principal: CurrentPrincipal, service: Service):
    """Create a new tale owned by the caller."""
    tale = await service.create_tale(
        principal,
        title=request.title,
        content=request.content,
        age_range=request.age_range.value,
        topic=request.topic,
        is_public=request.is_public,
    )
    return TaleResponse.from_tale(tale)


@router.get(
    "/user",
    response_model=list[TaleResponse],
    response_model_exclude_unset=True,
    summary="List my tales",
    description="All tales written by the caller, newest first, optionally filtered by visibility.",
)
async def list_user_tales(
    principal: CurrentPrincipal,
    service: Service,
    visibility: Optional[Visibility] = Query(default=None, description="public or private"),
):
    """List the caller's tales."""
    tales = await service.list_user_tales(principal, visibility.value if visibility else None)
    return [TaleResponse.from_tale(t) for t in tales]


@router.get(
    "/public",
    response_model=list[TaleResponse],
    response_model_exclude_unset=True,
    summary="List public tales",
    description="Public tales from all authors. When a valid token is supplied each tale includes is_liked.",
)
async def list_public_tales(
    credential: OptionalCredential,
    service: Service,
    age_range: Optional[AgeRange] = Query(default=None, description="Filter by age band"),
    sort: TaleSort = Query(default=TaleSort.NEWEST, description="newest, oldest or mostLiked"),
):
    """List public tales."""
    views = await service.list_public_tales(
        credential,
        age_range=age_range.value if age_range else None,
        sort=sort.value,
    )
    return [TaleResponse.from_view(v) for v in views]


@router.post(
    "/generate",
    response_model=GenerateTaleResponse,
    summary="Generate tale text",
    description="Write tale text with the configured language model. The result is not saved.",
)
async def generate_tale(request: GenerateTaleRequest, principal: CurrentPrincipal, generation: Generation):
    """Generate tale text from story parameters."""
    generated = await generation.generate(principal, request.to_generation_request())
    return GenerateTaleResponse(
        content=generated.content,
        target_word_count=generated.target_word_count,
    )


@router.get(
    "/{tale_id}",
    response_model=TaleResponse,
    response_model_exclude_unset=True,
    summary="Get a tale",
    description="Public tales are readable by anyone; private tales only by their author.",
)
async def get_tale(tale_id: str, credential: OptionalCredential, service: Service):
    """Get a tale by ID."""
    view = await service.read_tale(tale_id, credential)
    return TaleResponse.from_view(view)


@router.patch(
    "/{tale_id}",
    response_model=TaleResponse,
    response_model_exclude_unset=True,
    summary="Update a tale",
)
async def update_tale(
    tale_id: str,
    request: UpdateTaleRequest,
    principal: CurrentPrincipal,
    service: Service,
):
    """Update title, content or visibility. Author only."""
    tale = await service.mutate_tale(tale_id, principal, request.to_patch())
    return TaleResponse.from_tale(tale)


@router.delete(
    "/{tale_id}",
    response_model=MessageResponse,
    summary="Delete a tale",
)
async def delete_tale(tale_id: str, principal: CurrentPrincipal, service: Service):
    """Delete a tale. Author only."""
    await service.delete_tale(tale_id, principal)
    return MessageResponse(message="Tale removed")


@router.post(
    "/{tale_id}/like",
    response_model=LikesResponse,
    summary="Like a tale",
)
async def like_tale(tale_id: str, principal: CurrentPrincipal, service: Service):
    """Like a public tale."""
    likes = await service.like(tale_id, principal)
    return LikesResponse(likes=likes)


@router.delete(
    "/{tale_id}/like",
    response_model=LikesResponse,
    summary="Unlike a tale",
)
async def unlike_tale(tale_id: str, principal: CurrentPrincipal, service: Service):
    """Remove the caller's like."""
    likes = await service.unlike(tale_id, principal)
    return LikesResponse(likes=likes)
