"""Services Layer — the loading strategy runner and what is built on it.

Invariants:
    - One LoadingStrategyRunner per session (unit of work)
    - Services never build SQL themselves; EntityStore does

Design Decisions:
    - Walkthrough and seeding live here: they orchestrate the runner, they are not core logic
"""
