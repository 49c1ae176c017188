from dataclasses import dataclass
from typing import Dict, List, Optional

from dynaconf import Dynaconf
from backend.app.constants import DEFAULTS

from atlasgraph.config.settings import (
    HierarchyConfig,
    HierarchyRules,
    LimitsConfig,
    MigrationCostModel,
)

settings = Dynaconf(
    envvar_prefix="ATLASGRAPH",
    load_dotenv=True,
    settings_files=[],
)
settings.update(DEFAULTS)


def _parse_edges(value) -> Optional[Dict[str, List[str]]]:
    """
    Parse "domain:project,task;project:task" into a rules table.

    Returns None for an empty value so the built-in table applies.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        return {str(k): list(v) for k, v in value.items()}
    if not isinstance(value, str) or not value.strip():
        return None

    table: Dict[str, List[str]] = {}
    for entry in value.split(";"):
        if ":" not in entry:
            continue
        parent, children = entry.split(":", 1)
        parent = parent.strip()
        if not parent:
            continue
        table[parent] = [c.strip() for c in children.split(",") if c.strip()]
    return table or None


def _rules_from_settings() -> HierarchyRules:
    table = _parse_edges(settings.get("HIERARCHY_ALLOWED_EDGES"))
    if table is None:
        return HierarchyRules()
    return HierarchyRules.from_mapping(table)


@dataclass(frozen=True)
class AppConfig:
    # ---------------- App ----------------
    app_name: str = settings.get("APP_NAME", "atlasgraph-backend")
    api_prefix: str = settings.get("API_PREFIX", "")
    seed_state_path: str = settings.get("SEED_STATE_PATH", "")

    # ---------------- Hierarchy Policy ----------------
    hierarchy: HierarchyConfig = HierarchyConfig(
        rules=_rules_from_settings(),
        limits=LimitsConfig(
            max_children_per_parent=settings.get(
                "HIERARCHY_MAX_CHILDREN_PER_PARENT", 1000
            ),
            max_hierarchy_depth=settings.get("HIERARCHY_MAX_DEPTH", 5),
        ),
        migration=MigrationCostModel(
            seconds_per_init=settings.get("MIGRATION_SECONDS_PER_INIT", 0.1),
            seconds_per_restore=settings.get("MIGRATION_SECONDS_PER_RESTORE", 0.2),
            seconds_per_validate=settings.get("MIGRATION_SECONDS_PER_VALIDATE", 0.05),
        ),
    )
