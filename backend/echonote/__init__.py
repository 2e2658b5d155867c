"""
EchoNote Backend: Application Package Initializer
==================================================

What: Marks the `echonote` directory as a Python package.
Who:  Imported by uvicorn (`echonote.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is a layered application:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services & Pipeline (Business)    │  ← Validation, orchestration
    ├─────────────────────────────────────┤
    │      Repositories (Data Access)     │  ← Row ↔ record mapping
    ├─────────────────────────────────────┤
    │     Models & Schemas (Data)         │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Every component is constructed explicitly by `echonote.dependencies.build_container`
    and handed to the routes through FastAPI dependencies. Nothing is a
    module-level service singleton.
"""

__version__ = "1.0.0"
