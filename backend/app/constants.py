DEFAULTS = {
    # Service title shown in the OpenAPI docs
    "APP_NAME": "atlasgraph-backend",
    # Prefix for every router
    "API_PREFIX": "",
    # Soft cap on children per parent before the validator reports it
    "HIERARCHY_MAX_CHILDREN_PER_PARENT": 1000,
    # Soft cap on hierarchy depth before the validator reports it
    "HIERARCHY_MAX_DEPTH": 5,
    # Allowed-edge override, e.g. "domain:project,task;project:task" (empty = built-in table)
    "HIERARCHY_ALLOWED_EDGES": "",
    # Optional JSON file loaded into the in-memory state at startup
    "SEED_STATE_PATH": "",
    # Migration preview cost model (seconds per action)
    "MIGRATION_SECONDS_PER_INIT": 0.1,
    "MIGRATION_SECONDS_PER_RESTORE": 0.2,
    "MIGRATION_SECONDS_PER_VALIDATE": 0.05,
}
