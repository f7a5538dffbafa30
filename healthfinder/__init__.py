"""
HealthFinder API — Application Package
========================================

Clinic listing and review service.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services (Query & Aggregates)   │  ← Query composition, review writes
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async engine, sessions, readiness
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
