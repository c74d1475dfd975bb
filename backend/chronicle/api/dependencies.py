# backend/chronicle/api/dependencies.py
from fastapi import Request

from ..services.library import LibraryService


def get_library(request: Request) -> LibraryService:
    return request.app.state.library
