"""
User & relationship endpoints:
  POST   /users                 — create a user profile
  GET    /users/search?q=       — search by username / full name
  GET    /users/{id}            — fetch a user document
  PATCH  /users/{id}            — edit profile fields
  DELETE /users/{id}            — cascading delete of the user
  POST   /users/{id}/follow     — body.user_id follows {id}
  POST   /users/{id}/unfollow
  POST   /users/{id}/block
  POST   /users/{id}/unblock
  GET    /users/{id}/blocked    — blocked users with display attributes
  GET    /users/{id}/posts
  GET    /users/{id}/stories
"""
from fastapi import APIRouter, Depends, Query, status

from contentgraph.cascade import UserDeletion
from contentgraph.content import ContentGraph
from contentgraph.deps import get_content, get_deletion, get_relationships
from contentgraph.relationships import RelationshipGraph
from contentgraph.schemas import (
    ActorRequest,
    DeletionReport,
    PostDocument,
    StoryDocument,
    UserCreate,
    UserDocument,
    UserSummary,
    UserUpdate,
)

router = APIRouter()


@router.post("/", response_model=UserDocument, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate, graph: RelationshipGraph = Depends(get_relationships)
):
    return await graph.create_user(
        body.username, body.email, body.full_name, body.password_hash
    )


@router.get("/search", response_model=list[UserSummary])
async def search_users(
    q: str = Query(..., min_length=1), graph: RelationshipGraph = Depends(get_relationships)
):
    return await graph.search_users(q)


@router.get("/{user_id}", response_model=UserDocument)
async def get_user(user_id: str, graph: RelationshipGraph = Depends(get_relationships)):
    return await graph.get_user(user_id)


@router.patch("/{user_id}", response_model=UserDocument)
async def update_user(
    user_id: str, body: UserUpdate, graph: RelationshipGraph = Depends(get_relationships)
):
    return await graph.update_profile(user_id, **body.model_dump(exclude_unset=True))


@router.delete("/{user_id}", response_model=DeletionReport)
async def delete_user(user_id: str, deletion: UserDeletion = Depends(get_deletion)):
    """
    Remove the user and every trace of them.

    Not atomic: on failure the completed steps stay applied and the same
    request can be repeated to finish the job.
    """
    return await deletion.delete_user(user_id)


@router.post("/{user_id}/follow", response_model=UserDocument)
async def follow_user(
    user_id: str, body: ActorRequest, graph: RelationshipGraph = Depends(get_relationships)
):
    return await graph.follow(body.user_id, user_id)


@router.post("/{user_id}/unfollow", response_model=UserDocument)
async def unfollow_user(
    user_id: str, body: ActorRequest, graph: RelationshipGraph = Depends(get_relationships)
):
    return await graph.unfollow(body.user_id, user_id)


@router.post("/{user_id}/block", response_model=UserDocument)
async def block_user(
    user_id: str, body: ActorRequest, graph: RelationshipGraph = Depends(get_relationships)
):
    return await graph.block(body.user_id, user_id)


@router.post("/{user_id}/unblock", response_model=UserDocument)
async def unblock_user(
    user_id: str, body: ActorRequest, graph: RelationshipGraph = Depends(get_relationships)
):
    return await graph.unblock(body.user_id, user_id)


@router.get("/{user_id}/blocked", response_model=list[UserSummary])
async def list_blocked(user_id: str, graph: RelationshipGraph = Depends(get_relationships)):
    return await graph.list_blocked(user_id)


@router.get("/{user_id}/posts", response_model=list[PostDocument])
async def list_posts(user_id: str, content: ContentGraph = Depends(get_content)):
    return await content.list_user_posts(user_id)


@router.get("/{user_id}/stories", response_model=list[StoryDocument])
async def list_stories(user_id: str, content: ContentGraph = Depends(get_content)):
    return await content.list_user_stories(user_id)
