"""
Post endpoints:
  POST   /posts                — create a post (media given as references)
  GET    /posts/{id}           — fetch a single post
  PATCH  /posts/{id}           — edit the caption
  DELETE /posts/{id}           — delete the post and its comment threads
  POST   /posts/{id}/like      — body.user_id likes the post
  POST   /posts/{id}/dislike   — undo a like
  GET    /posts/{id}/comments  — comment thread with authors populated
"""
from fastapi import APIRouter, Depends, Response, status

from contentgraph.content import ContentGraph
from contentgraph.deps import get_content
from contentgraph.schemas import (
    ActorRequest,
    CommentDocument,
    PostCreate,
    PostDocument,
    PostUpdate,
)

router = APIRouter()


@router.post("/", response_model=PostDocument, status_code=status.HTTP_201_CREATED)
async def create_post(body: PostCreate, content: ContentGraph = Depends(get_content)):
    return await content.create_post(body.user_id, body.caption, body.media)


@router.get("/{post_id}", response_model=PostDocument)
async def get_post(post_id: str, content: ContentGraph = Depends(get_content)):
    return await content.get_post(post_id)


@router.patch("/{post_id}", response_model=PostDocument)
async def update_post(
    post_id: str, body: PostUpdate, content: ContentGraph = Depends(get_content)
):
    return await content.update_post(post_id, body.caption)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, content: ContentGraph = Depends(get_content)):
    await content.delete_post(post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{post_id}/like", response_model=PostDocument)
async def like_post(
    post_id: str, body: ActorRequest, content: ContentGraph = Depends(get_content)
):
    return await content.like_post(post_id, body.user_id)


@router.post("/{post_id}/dislike", response_model=PostDocument)
async def dislike_post(
    post_id: str, body: ActorRequest, content: ContentGraph = Depends(get_content)
):
    return await content.dislike_post(post_id, body.user_id)


@router.get("/{post_id}/comments", response_model=list[CommentDocument])
async def list_comments(post_id: str, content: ContentGraph = Depends(get_content)):
    return await content.list_post_comments(post_id)
