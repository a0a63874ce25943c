"""Pluto Queries — lazy, eager and explicit loading over a course catalogue.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
