"""
Story endpoints:
  POST /stories — publish a story (listing lives at GET /users/{id}/stories)
"""
from fastapi import APIRouter, Depends, status

from contentgraph.content import ContentGraph
from contentgraph.deps import get_content
from contentgraph.schemas import StoryCreate, StoryDocument

router = APIRouter()


@router.post("/", response_model=StoryDocument, status_code=status.HTTP_201_CREATED)
async def create_story(body: StoryCreate, content: ContentGraph = Depends(get_content)):
    return await content.create_story(body.user_id, body.text, body.image)
