"""Route Modules — one file per resource/concern.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Routes never load data themselves (delegate to the runner and fetch_payload)

Design Decisions:
    - Explicit registration in main.py over auto-discovery
"""
