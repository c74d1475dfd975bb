# backend/chronicle/api/projects.py
from typing import List

from fastapi import APIRouter, Depends

from ..schemas.project import ProjectCreate, ProjectUpdate, Project as ProjectSchema, ProjectDetail
from ..services.library import LibraryService
from ..utils.logging import api_logger
from .dependencies import get_library

router = APIRouter(prefix="/api/projects", tags=["projects"])

@router.get("", response_model=List[ProjectDetail])
def list_projects(library: LibraryService = Depends(get_library)):
    """List all projects, newest first"""
    projects = library.list_projects()
    api_logger.info(f"Found {len(projects)} projects", extra={
        "endpoint": "/api/projects",
        "method": "GET"
    })
    return projects

@router.get("/{project_id}", response_model=ProjectDetail)
def get_project(project_id: int, library: LibraryService = Depends(get_library)):
    api_logger.debug("Fetching project", extra={"project_id": project_id})
    return library.get_project(project_id)

@router.post("", response_model=ProjectSchema)
def create_project(project: ProjectCreate, library: LibraryService = Depends(get_library)):
    api_logger.info("Creating new project", extra={"project_name": project.name})
    return library.create_project(project.name, project.description)

@router.put("/{project_id}", response_model=ProjectSchema)
def update_project(project_id: int, project: ProjectUpdate, library: LibraryService = Depends(get_library)):
    api_logger.info("Updating project", extra={"project_id": project_id})
    return library.update_project(project_id, **project.model_dump(exclude_unset=True))

@router.delete("/{project_id}")
def delete_project(project_id: int, library: LibraryService = Depends(get_library)):
    api_logger.info("Deleting project", extra={"project_id": project_id})
    library.delete_project(project_id)
    return {"success": True}
