"""Database Layer — declarative base shared by models and migrations."""
