from functools import lru_cache
import json
import logging
from pathlib import Path
import time

from atlasgraph.hierarchy.state import HierarchyState

from backend.app.config import AppConfig
from backend.app.services.hierarchy_service import HierarchyService


@lru_cache
def get_config() -> AppConfig:
    return AppConfig()


def load_seed_state(path: str) -> HierarchyState:
    """
    Read a raw state dict from a JSON file; an empty path yields an empty state.
    """
    if not path:
        return HierarchyState()
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return HierarchyState.from_dict(payload)


@lru_cache
def get_hierarchy_service() -> HierarchyService:
    logger = logging.getLogger("atlasgraph.startup")
    t0 = time.perf_counter()
    config = get_config()

    state = load_seed_state(config.seed_state_path)
    service = HierarchyService(state=state, config=config.hierarchy)
    logger.info(
        "[startup] hierarchy service with %s entities in %.3fs",
        state.count(),
        time.perf_counter() - t0,
    )
    return service
