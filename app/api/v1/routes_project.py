# File: app/api/v1/routes_project.py

"""
Project persistence endpoints (the "worker" API).

Records live in the caller's key-value store under
settings.project_key_prefix + <project id>. Every error comes back as
{"error": ..., **extra} JSON, and every response carries permissive CORS
headers (added by the middleware in app.main).
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.deps import get_backend_session
from app.core.config import settings
from app.services.backend_session import BackendSession
from app.services.kv_store import normalize_key_listing

logger = logging.getLogger(__name__)

router = APIRouter(tags=["projects"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def json_error(status: int, message: str, /, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": message, **extra},
        headers=CORS_HEADERS,
    )


def project_key(project_id: str) -> str:
    return f"{settings.project_key_prefix}{project_id}"


@router.get("/list", summary="List the caller's projects")
def list_projects(session: BackendSession = Depends(get_backend_session)):
    """
    GET /api/projects/list

    Returns:
        {"projects": [...]} in key order; unreadable entries are skipped.
    """
    if not session.is_signed_in:
        return json_error(401, "User not authenticated")
    try:
        keys = normalize_key_listing(session.kv.list(f"{settings.project_key_prefix}*"))
        projects = []
        for key in keys:
            try:
                value = session.kv.get(key)
            except ValueError as e:
                logger.warning("[PROJECTS] Skipping unreadable entry %s: %s", key, e)
                continue
            if value:
                projects.append(value)
        return {"projects": projects}
    except Exception as e:
        logger.exception("[PROJECTS] List failed")
        session.rollback()
        return json_error(500, "Failed to list projects", message=str(e) or "Unknown error")


@router.get("/get", summary="Fetch one project by id")
def get_project(request: Request, session: BackendSession = Depends(get_backend_session)):
    """
    GET /api/projects/get?id=<id>
    """
    if not session.is_signed_in:
        return json_error(401, "User not authenticated")
    project_id = request.query_params.get("id")
    if not project_id:
        return json_error(400, "Missing id search parameter")
    try:
        project = session.kv.get(project_key(project_id))
        if project is None:
            return json_error(404, "Project not found", id=project_id)
        return {"project": project}
    except Exception as e:
        logger.exception("[PROJECTS] Get failed for %s", project_id)
        session.rollback()
        return json_error(500, "Failed to get project", message=str(e) or "Unknown error")


@router.post("/save", summary="Create or overwrite a project")
async def save_project(request: Request, session: BackendSession = Depends(get_backend_session)):
    """
    POST /api/projects/save with body {"project": {...}}

    `sourceImage` is mandatory. The stored record is the posted one plus a
    server-side `updatedAt`; projects posted without an id get a fresh
    time-based id instead of sharing a per-user key.
    """
    if not session.is_signed_in:
        return json_error(401, "User not authenticated")

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return json_error(
            400,
            "Invalid request body (expect JSON with project)",
            message=str(e) or "Failed to parse JSON",
        )

    project = body.get("project") if isinstance(body, dict) else None
    if not project or not isinstance(project, dict):
        return json_error(400, "Project is required", received=bool(project))

    source_image = project.get("sourceImage")
    if not source_image or not isinstance(source_image, str):
        return json_error(400, "Project is required (sourceImage is mandatory)")

    try:
        payload: Dict[str, Any] = {
            **project,
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        }
        project_id = payload.get("id")
        if project_id is None or project_id == "":
            project_id = str(int(time.time() * 1000))
            payload["id"] = project_id
            logger.warning("[PROJECTS] Project saved without id, assigned %s", project_id)
        project_id = str(project_id)

        session.kv.set(project_key(project_id), payload)
        return {"saved": True, "id": project_id, "project": payload}
    except Exception as e:
        logger.exception("[PROJECTS] Save failed")
        session.rollback()
        return json_error(500, "Failed to save project", message=str(e) or "Unknown error")
