# app/api/deps.py
from fastapi import Request

from app.agent.nodes import IntakeDeps
from app.db.document_store import DocumentStore


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_intake_deps(request: Request) -> IntakeDeps:
    return request.app.state.intake_deps
