# File: app/services/project_client.py

"""
Client for the project persistence API.

create/update host the project's images first (source always, rendered
when present) and only then persist the record; a record whose source
image cannot be hosted is never saved. Every method degrades to None / []
instead of raising.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.schemas.project import ProjectRecord
from app.services.backend_session import BackendSession
from app.services.hosting_service import (
    get_or_create_hosting_config,
    is_hosted_url,
    upload_image_to_hosting,
)

logger = logging.getLogger(__name__)


class ProjectStoreClient:
    def __init__(
        self,
        session: BackendSession,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        image_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            session: signed-in backend session (its token authenticates API calls)
            base_url: worker API root, e.g. "https://worker.example.com"
            http_client: client for the worker API
            image_client: client used to fetch remote images before hosting
        """
        self.session = session
        self.base_url = (base_url or settings.worker_base_url or "").rstrip("/")
        self.http_client = http_client
        self.image_client = image_client

    def _ready(self) -> bool:
        return self.session.is_signed_in and bool(self.base_url)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{settings.api_prefix}/projects{path}"
        if self.http_client is not None:
            return await self.http_client.request(method, url, headers=self._headers(), **kwargs)
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            return await client.request(method, url, headers=self._headers(), **kwargs)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, item: ProjectRecord) -> Optional[ProjectRecord]:
        return await self._save(item)

    async def update(self, item: ProjectRecord) -> Optional[ProjectRecord]:
        return await self._save(item)

    async def _save(self, item: ProjectRecord) -> Optional[ProjectRecord]:
        if not self._ready():
            return None

        project_id = item.id
        hosting = get_or_create_hosting_config(self.session)

        hosted_source = None
        if project_id and item.source_image:
            hosted_source = await upload_image_to_hosting(
                self.session,
                hosting=hosting,
                url=item.source_image,
                project_id=project_id,
                label="source",
                client=self.image_client,
            )

        hosted_render = None
        if project_id and item.rendered_image:
            hosted_render = await upload_image_to_hosting(
                self.session,
                hosting=hosting,
                url=item.rendered_image,
                project_id=project_id,
                label="rendered",
                client=self.image_client,
            )

        resolved_source = (hosted_source.url if hosted_source else None) or (
            item.source_image if is_hosted_url(item.source_image) else ""
        )
        resolved_render = (hosted_render.url if hosted_render else None) or (
            item.rendered_image if is_hosted_url(item.rendered_image) else None
        )

        if not resolved_source:
            logger.warning("[PROJECTS] Failed to host source image for %s, skipping save", project_id)
            return None

        payload = item.model_copy(
            update={"source_image": resolved_source, "rendered_image": resolved_render}
        ).to_payload()

        try:
            response = await self._request("POST", "/save", json={"project": payload})
        except httpx.HTTPError as e:
            logger.error("[PROJECTS] Failed to save project %s: %s", project_id, e)
            return None

        if not response.is_success:
            # Images may already be hosted at this point; they stay orphaned.
            logger.error(
                "[PROJECTS] Save of %s rejected (%s): %s",
                project_id,
                response.status_code,
                response.text[:200],
            )
            return None

        try:
            stored = response.json().get("project") or payload
            return ProjectRecord.model_validate(stored)
        except (ValueError, AttributeError) as e:
            logger.error("[PROJECTS] Unreadable save response for %s: %s", project_id, e)
            return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, project_id: str) -> Optional[ProjectRecord]:
        if not self._ready() or not project_id:
            return None
        try:
            response = await self._request("GET", "/get", params={"id": project_id})
        except httpx.HTTPError as e:
            logger.error("[PROJECTS] Failed to fetch project %s: %s", project_id, e)
            return None

        if response.status_code == 404:
            return None
        if not response.is_success:
            logger.error("[PROJECTS] Fetch of %s failed (%s)", project_id, response.status_code)
            return None

        try:
            project = response.json().get("project")
            return ProjectRecord.model_validate(project) if project else None
        except (ValueError, AttributeError) as e:
            logger.error("[PROJECTS] Unreadable project %s: %s", project_id, e)
            return None

    async def list(self) -> List[ProjectRecord]:
        if not self._ready():
            return []
        try:
            response = await self._request("GET", "/list")
            if not response.is_success:
                logger.error("[PROJECTS] List failed (%s)", response.status_code)
                return []
            raw: List[Dict[str, Any]] = response.json().get("projects") or []
            if not isinstance(raw, list):
                raise ValueError(f"expected a list of projects, got {type(raw).__name__}")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error("[PROJECTS] Failed to list projects: %s", e)
            return []

        projects: List[ProjectRecord] = []
        for p in raw:
            if not isinstance(p, dict):
                continue
            try:
                projects.append(ProjectRecord.model_validate(p))
            except ValueError as e:
                logger.warning("[PROJECTS] Skipping unreadable project %s: %s", p.get("id"), e)
        return sorted(projects, key=lambda p: p.timestamp, reverse=True)
