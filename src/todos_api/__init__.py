"""
Todos API package.

A FastAPI service exposing CRUD endpoints over a single SQL ``todos`` table.
The application instance lives in ``todos_api.main``; run it with
``uvicorn todos_api.main:app``.
"""

__version__ = "0.1.0"
