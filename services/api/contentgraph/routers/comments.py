"""
Comment & reply endpoints:
  POST   /comments                                  — comment on a post
  PATCH  /comments/{id}                             — author edits the text
  DELETE /comments/{id}                             — delete with its replies
  POST   /comments/{id}/like | /dislike
  POST   /comments/{id}/replies                     — reply to a comment
  PATCH  /comments/{id}/replies/{reply_id}          — author edits a reply
  DELETE /comments/{id}/replies/{reply_id}
  POST   /comments/{id}/replies/{reply_id}/like | /dislike

Replies have no endpoint of their own; every route goes through the parent
comment and returns the updated comment document.
"""
from fastapi import APIRouter, Depends, Response, status

from contentgraph.content import ContentGraph
from contentgraph.deps import get_content
from contentgraph.schemas import ActorRequest, CommentCreate, CommentDocument, TextUpdate

router = APIRouter()


@router.post("/", response_model=CommentDocument, status_code=status.HTTP_201_CREATED)
async def create_comment(body: CommentCreate, content: ContentGraph = Depends(get_content)):
    return await content.create_comment(body.post_id, body.user_id, body.text)


@router.patch("/{comment_id}", response_model=CommentDocument)
async def update_comment(
    comment_id: str, body: TextUpdate, content: ContentGraph = Depends(get_content)
):
    return await content.update_comment(comment_id, body.user_id, body.text)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: str, content: ContentGraph = Depends(get_content)):
    await content.delete_comment(comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{comment_id}/like", response_model=CommentDocument)
async def like_comment(
    comment_id: str, body: ActorRequest, content: ContentGraph = Depends(get_content)
):
    return await content.like_comment(comment_id, body.user_id)


@router.post("/{comment_id}/dislike", response_model=CommentDocument)
async def dislike_comment(
    comment_id: str, body: ActorRequest, content: ContentGraph = Depends(get_content)
):
    return await content.dislike_comment(comment_id, body.user_id)


# ──────────────────────────── Replies ─────────────────────────────────────

@router.post(
    "/{comment_id}/replies",
    response_model=CommentDocument,
    status_code=status.HTTP_201_CREATED,
)
async def create_reply(
    comment_id: str, body: TextUpdate, content: ContentGraph = Depends(get_content)
):
    return await content.create_reply(comment_id, body.user_id, body.text)


@router.patch("/{comment_id}/replies/{reply_id}", response_model=CommentDocument)
async def update_reply(
    comment_id: str,
    reply_id: str,
    body: TextUpdate,
    content: ContentGraph = Depends(get_content),
):
    return await content.update_reply(comment_id, reply_id, body.user_id, body.text)


@router.delete("/{comment_id}/replies/{reply_id}", response_model=CommentDocument)
async def delete_reply(
    comment_id: str, reply_id: str, content: ContentGraph = Depends(get_content)
):
    return await content.delete_reply(comment_id, reply_id)


@router.post("/{comment_id}/replies/{reply_id}/like", response_model=CommentDocument)
async def like_reply(
    comment_id: str,
    reply_id: str,
    body: ActorRequest,
    content: ContentGraph = Depends(get_content),
):
    return await content.like_reply(comment_id, reply_id, body.user_id)


@router.post("/{comment_id}/replies/{reply_id}/dislike", response_model=CommentDocument)
async def dislike_reply(
    comment_id: str,
    reply_id: str,
    body: ActorRequest,
    content: ContentGraph = Depends(get_content),
):
    return await content.dislike_reply(comment_id, reply_id, body.user_id)
