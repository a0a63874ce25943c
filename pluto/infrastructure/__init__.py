"""Infrastructure Layer — database sessions, the storage collaborator, logging.

Invariants:
    - Infrastructure imports from core/ (errors, path types) but never from services/ or api/
    - Every SQLAlchemy failure is mapped to a core error before it leaves this layer
"""
