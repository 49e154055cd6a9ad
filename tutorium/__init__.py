"""
Tutorium Backend — Application Package
========================================

Backend of a language school: role-based management of courses, topics,
groups, students, lessons and their recordings, attendance, feedback,
products and teaching-material uploads.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Auth dependencies (who is asking) │  ← JWT, roles
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← ownership, rules, progress
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
