# File: app/services/visualizer_controller.py

"""
Upload and visualizer workflows.

Upload:  encode file -> create project (host source, persist record)
Viewer:  load record -> show saved 3D view, or generate one -> host it as
         "image3d" -> update the record

Generation waits at most settings.generation_timeout_seconds. A timeout
only stops the waiting: the backend call keeps running and its result is
dropped when it arrives.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Set

import httpx

from app.core.config import settings
from app.core.errors import RoomifyError
from app.schemas.project import ProjectRecord
from app.services import visualizer_state as vs
from app.services.generation_service import GeneratedImage, ImageGenerator, generate_3d_view
from app.services.hosting_service import get_or_create_hosting_config, upload_image_to_hosting
from app.services.image_converter import encode_upload, fetch_blob_from_url
from app.services.project_client import ProjectStoreClient

logger = logging.getLogger(__name__)


def new_project_id() -> str:
    """Time-based project id (milliseconds since the epoch)."""
    return str(int(time.time() * 1000))


async def create_project_from_upload(
    store: ProjectStoreClient,
    content: bytes,
    *,
    filename: str = "",
    content_type: str = "",
    name: Optional[str] = None,
) -> Optional[ProjectRecord]:
    """
    Turn an uploaded floor plan into a persisted project.

    Returns the stored record, or None when hosting or persistence failed.
    Raises UnsupportedImageTypeError for files that are not JPEG/PNG.
    """
    data_url = encode_upload(content, filename=filename, content_type=content_type)
    now_ms = int(time.time() * 1000)
    item = ProjectRecord(
        id=str(now_ms),
        name=name,
        sourceImage=data_url,
        renderedImage=None,
        timestamp=now_ms,
        ownerId=store.session.user_id,
        isPublic=False,
    )
    saved = await store.create(item)
    if saved is None:
        logger.warning("[UPLOAD] Project %s was not saved", item.id)
    return saved


class VisualizerController:
    def __init__(
        self,
        store: ProjectStoreClient,
        generator: ImageGenerator,
        *,
        timeout: Optional[float] = None,
        test_mode: bool = True,
        image_client: Optional[httpx.AsyncClient] = None,
    ):
        self.store = store
        self.generator = generator
        self.timeout = settings.generation_timeout_seconds if timeout is None else timeout
        self.test_mode = test_mode
        self.image_client = image_client
        self.state = vs.VisualizerState()
        # Generation calls abandoned after a timeout; held so they can finish.
        self._abandoned: Set[asyncio.Task] = set()

    @property
    def session(self):
        return self.store.session

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(
        self,
        project_id: str,
        navigation_state: Optional[Dict[str, Any]] = None,
    ) -> vs.VisualizerState:
        """
        Load a project from the store, falling back to the data the upload
        page passed along when navigating here.
        """
        self.state = vs.initial_state(project_id)
        if not project_id:
            self.state = vs.project_load_failed(self.state, "Project ID is required")
            return self.state

        # store.get logs and returns None on any read failure
        project = await self.store.get(project_id) if self.session.is_signed_in else None
        if project is None:
            project = self._project_from_navigation(project_id, navigation_state or {})

        if project is not None:
            self.state = vs.project_loaded(self.state, project)
            if project.image_3d:
                await self._load_saved_3d(project.image_3d)
        elif not self.session.is_signed_in:
            self.state = vs.project_load_failed(self.state, "Please sign in to view projects")
        else:
            self.state = vs.project_load_failed(self.state, "Project not found")
        return self.state

    @staticmethod
    def _project_from_navigation(project_id: str, nav: Dict[str, Any]) -> Optional[ProjectRecord]:
        inner = nav.get("state") or {}
        initial_image = nav.get("initialImage") or inner.get("initialImage")
        if not initial_image:
            return None
        return ProjectRecord(
            id=project_id,
            name=nav.get("name") or inner.get("name"),
            sourceImage=initial_image,
            renderedImage=nav.get("initialRendered") or inner.get("initialRendered"),
            timestamp=int(time.time() * 1000),
            ownerId=nav.get("ownerId") or inner.get("ownerId"),
            isPublic=False,
        )

    async def _load_saved_3d(self, url: str) -> None:
        try:
            await fetch_blob_from_url(url, client=self.image_client)
        except RoomifyError as e:
            logger.warning("[VISUALIZER] Failed to load saved image3D %s: %s", url, e)
            self.state = vs.saved_3d_failed(self.state)
            return
        self.state = vs.saved_3d_loaded(self.state, url)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def ensure_3d(self) -> vs.VisualizerState:
        """Generate a 3D view when the loaded project has none."""
        if vs.needs_generation(self.state):
            return await self._run_generation()
        return self.state

    async def regenerate(self) -> vs.VisualizerState:
        if self.state.generation == "generating":
            return self.state
        next_state = vs.regenerate(self.state)
        if next_state is self.state:
            return self.state
        self.state = next_state
        return await self._run_generation(already_started=True)

    async def _run_generation(self, already_started: bool = False) -> vs.VisualizerState:
        if not already_started:
            if self.state.generation == "generating":
                return self.state
            self.state = vs.generation_started(self.state)

        project = self.state.project
        task = asyncio.ensure_future(
            generate_3d_view(
                project.source_image,
                self.generator,
                test_mode=self.test_mode,
                client=self.image_client,
            )
        )
        try:
            image: GeneratedImage = await asyncio.wait_for(asyncio.shield(task), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("[VISUALIZER] 3D generation for %s timed out", project.id)
            self._abandon(task)
            self.state = vs.generation_timed_out(self.state)
            return self.state
        except RoomifyError as e:
            logger.error("[VISUALIZER] Failed to generate 3D view: %s", e)
            self.state = vs.generation_failed(self.state, str(e))
            return self.state

        self.state = vs.generation_succeeded(self.state, image.src)
        await self._persist_3d(project, image.src)
        return self.state

    def _abandon(self, task: asyncio.Task) -> None:
        self._abandoned.add(task)

        def _done(t: asyncio.Task) -> None:
            self._abandoned.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.info("[VISUALIZER] Abandoned generation finished with error: %s", t.exception())

        task.add_done_callback(_done)

    async def _persist_3d(self, project: ProjectRecord, src: str) -> None:
        hosting = get_or_create_hosting_config(self.session)
        hosted = await upload_image_to_hosting(
            self.session,
            hosting=hosting,
            url=src,
            project_id=project.id,
            label="image3d",
            client=self.image_client,
        )
        if not hosted:
            return
        self.state = vs.generated_3d_hosted(self.state, hosted.url)
        updated = await self.store.update(project.model_copy(update={"image_3d": hosted.url}))
        if updated is not None:
            self.state = vs.project_updated(self.state, updated)

    # ------------------------------------------------------------------

    async def open(
        self,
        project_id: str,
        navigation_state: Optional[Dict[str, Any]] = None,
    ) -> vs.VisualizerState:
        """Load the project and generate its 3D view if it has none."""
        await self.load(project_id, navigation_state)
        return await self.ensure_3d()
