import json
import logging
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from atlasgraph import (  # noqa: E402
    AttachRequest,
    DetachRequest,
    HierarchyEngine,
    HierarchyState,
    MigrationOptions,
    MoveRequest,
)
from backend.app.config import AppConfig  # noqa: E402


def _legacy_state() -> HierarchyState:
    """
    A small pre-hierarchy dataset: links only via domain_id / project_id.
    """
    return HierarchyState.from_dict(
        {
            "domains": [{"id": "d1", "name": "Research"}],
            "projects": [
                {"id": "p1", "name": "Atlas", "domain_id": "d1"},
                {"id": "p2", "name": "Orbit", "domain_id": "d1"},
            ],
            "tasks": [{"id": "t1", "title": "Survey", "project_id": "p1", "domain_id": "d1"}],
            "ideas": [{"id": "i1", "title": "Radial layout", "domain_id": "d1"}],
            "notes": [{"id": "n1", "text": "dangling", "project_id": "ghost"}],
            "checklists": [],
        }
    )


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    logger = logging.getLogger("atlasgraph.run")
    start = time.perf_counter()
    config = AppConfig()

    engine = HierarchyEngine(config.hierarchy)
    state = _legacy_state()

    def report(label: str, payload) -> None:
        logger.info("[%s] %.3fs", label, time.perf_counter() - start)
        logger.info(json.dumps(payload, indent=2, default=str))

    report("analyze", engine.analyze(state).to_dict())
    report("preview", engine.preview(state).to_dict())
    report("migrate", engine.migrate(state, MigrationOptions()).to_dict())

    report(
        "move t1 -> p2",
        engine.move(MoveRequest("project", "p2", "task", "t1"), state).to_dict(),
    )
    report(
        "attach p1 under t1 (disallowed)",
        engine.attach(AttachRequest("task", "t1", "project", "p1"), state).to_dict(),
    )

    engine.set_lock("p1", "hierarchy", True, state)
    report(
        "detach locked p1",
        engine.detach(DetachRequest("project", "p1"), state).to_dict(),
    )

    defects = engine.validate(state)
    report("validate", [d.to_dict() for d in defects])
    report("stats", engine.statistics(state).to_dict())

    if defects:
        logger.warning("[validate] %s defect(s) remain after migration", len(defects))


if __name__ == "__main__":
    main()
