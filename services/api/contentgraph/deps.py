"""
Service wiring and FastAPI dependencies.

The managers are built once per process in the app lifespan and parked on
app.state; routes receive them through Depends().
"""
from dataclasses import dataclass

from fastapi import Request

from contentgraph.cascade import UserDeletion
from contentgraph.config import Settings
from contentgraph.content import ContentGraph
from contentgraph.relationships import RelationshipGraph
from contentgraph.store import EntityStore


@dataclass
class Services:
    relationships: RelationshipGraph
    content: ContentGraph
    deletion: UserDeletion


def build_services(store: EntityStore, settings: Settings) -> Services:
    return Services(
        relationships=RelationshipGraph(store, search_limit=settings.search_limit),
        content=ContentGraph(
            store,
            max_text_length=settings.max_text_length,
            post_media_limit=settings.post_media_limit,
        ),
        deletion=UserDeletion(store),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_relationships(request: Request) -> RelationshipGraph:
    return get_services(request).relationships


def get_content(request: Request) -> ContentGraph:
    return get_services(request).content


def get_deletion(request: Request) -> UserDeletion:
    return get_services(request).deletion
