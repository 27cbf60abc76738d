"""
Voyage Teams Backend: Application Package Initializer
=====================================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn (`app.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is layered the same way for every feature:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, caller identity
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← votes, selections, proposals
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async sessions, constraints
    └─────────────────────────────────────┘

    Services never see a Request object. They receive an explicit database
    session and an `AuthenticatedCaller`, and they raise exceptions from
    `app.exceptions`; the route layer turns those into status codes.
"""

__version__ = "1.0.0"
