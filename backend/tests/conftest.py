from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from contextlib import asynccontextmanager

from backend.app.main import create_app
from backend.app.config import AppConfig
from backend.app.dependencies import get_hierarchy_service
from backend.app.services.hierarchy_service import HierarchyService

from atlasgraph.api import HierarchyEngine
from atlasgraph.hierarchy.state import HierarchyState


def make_state(**collections) -> HierarchyState:
    """
    Build a state from keyword collections, e.g. make_state(domains=[...]).
    """
    return HierarchyState.from_dict(dict(collections))


@pytest.fixture()
def engine() -> HierarchyEngine:
    return HierarchyEngine()


@pytest.fixture()
def chain_state() -> HierarchyState:
    """
    d1 -> p1 -> t1, plus a spare domain, project and note.
    """
    return make_state(
        domains=[
            {"id": "d1", "name": "Research"},
            {"id": "d2", "name": "Ops"},
        ],
        projects=[
            {"id": "p1", "parent_id": "d1", "domain_id": "d1"},
            {"id": "p2", "parent_id": "d2", "domain_id": "d2"},
        ],
        tasks=[
            {"id": "t1", "parent_id": "p1", "project_id": "p1", "domain_id": "d1"},
        ],
        notes=[{"id": "n1"}],
    )


@pytest.fixture()
def legacy_state() -> HierarchyState:
    """
    Pre-hierarchy records linked only through domain_id / project_id.
    """
    return make_state(
        domains=[{"id": "d1"}],
        projects=[{"id": "p1", "domain_id": "d1"}],
        tasks=[{"id": "t1", "project_id": "p1", "domain_id": "d1"}],
        ideas=[{"id": "i1", "domain_id": "d1"}],
        notes=[],
        checklists=[{"id": "c1", "project_id": "p1"}],
    )


@pytest.fixture()
def service() -> HierarchyService:
    return HierarchyService(config=AppConfig().hierarchy)


@pytest.fixture()
def client(service: HierarchyService):
    @asynccontextmanager
    async def _no_lifespan(_: FastAPI):
        yield

    app = create_app(AppConfig())
    app.router.lifespan_context = _no_lifespan

    app.dependency_overrides[get_hierarchy_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
