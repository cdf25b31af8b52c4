# File: app/services/visualizer_state.py

"""
View state for the project visualizer.

The state is an immutable record; every user or network event is a pure
function returning the next state. Load status and 3D generation status
are tracked separately:

    loading -> ready | error
    ready (no 3D) -> generating -> ready (with 3D) | failed
    ready (with 3D) --regenerate--> generating

View mode (split / single), per-pane zoom and pan, the comparison slider
and fullscreen are orthogonal to both.
"""

from dataclasses import dataclass, field, replace
from typing import Literal, Optional, Tuple

from app.schemas.project import ProjectRecord

Pane = Literal["2d", "3d"]
ViewMode = Literal["split", "single"]

MIN_ZOOM = 0.5
MAX_ZOOM = 3.0
BUTTON_ZOOM_STEP = 0.2
WHEEL_ZOOM_STEP = 0.1
DEFAULT_SLIDER = 50.0

TIMEOUT_MESSAGE = "Request timed out. You can try again or check your balance."
SAVED_3D_FAILED_MESSAGE = "Could not load saved 3D view. You can regenerate."


def clamp_zoom(value: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, round(value, 4)))


@dataclass(frozen=True)
class PaneView:
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    dragging: bool = False


@dataclass(frozen=True)
class VisualizerState:
    project_id: str = ""
    status: Literal["loading", "ready", "error"] = "loading"
    project: Optional[ProjectRecord] = None
    error: Optional[str] = None

    generation: Literal["idle", "generating", "failed"] = "idle"
    image_3d: Optional[str] = None
    loading_saved_3d: bool = False
    error_3d: Optional[str] = None

    view_mode: ViewMode = "split"
    pane_2d: PaneView = field(default_factory=PaneView)
    pane_3d: PaneView = field(default_factory=PaneView)
    drag_origin: Tuple[float, float] = (0.0, 0.0)
    comparison_slider: float = DEFAULT_SLIDER
    is_fullscreen: bool = False


def initial_state(project_id: str) -> VisualizerState:
    return VisualizerState(project_id=project_id)


def phase(state: VisualizerState) -> str:
    """Collapse the state into one of the visualizer's display phases."""
    if state.status == "loading":
        return "loading"
    if state.status == "error":
        return "error"
    if state.generation == "generating":
        return "generating-3d"
    if state.image_3d:
        return "ready-with-3d"
    if state.generation == "failed":
        return "error-3d"
    return "ready-no-3d"


def needs_generation(state: VisualizerState) -> bool:
    """True when a loaded project has no 3D view and nothing is in flight."""
    return (
        state.status == "ready"
        and state.project is not None
        and bool(state.project.source_image)
        and not state.image_3d
        and not (state.project.image_3d)
        and state.generation == "idle"
    )


# ----------------------------------------------------------------------
# Loading
# ----------------------------------------------------------------------

def project_loaded(state: VisualizerState, project: ProjectRecord) -> VisualizerState:
    return replace(
        state,
        status="ready",
        project=project,
        error=None,
        loading_saved_3d=bool(project.image_3d),
    )


def project_load_failed(state: VisualizerState, message: str) -> VisualizerState:
    return replace(state, status="error", error=message)


def saved_3d_loaded(state: VisualizerState, src: str) -> VisualizerState:
    return replace(state, image_3d=src, loading_saved_3d=False, error_3d=None)


def saved_3d_failed(state: VisualizerState) -> VisualizerState:
    return replace(
        state,
        loading_saved_3d=False,
        generation="failed",
        error_3d=SAVED_3D_FAILED_MESSAGE,
    )


def project_updated(state: VisualizerState, project: ProjectRecord) -> VisualizerState:
    return replace(state, project=project)


# ----------------------------------------------------------------------
# 3D generation
# ----------------------------------------------------------------------

def generation_started(state: VisualizerState) -> VisualizerState:
    """No-op while a generation is already in flight."""
    if state.generation == "generating":
        return state
    return replace(state, generation="generating", error_3d=None)


def generation_succeeded(state: VisualizerState, src: str) -> VisualizerState:
    return replace(
        state,
        generation="idle",
        image_3d=src,
        error_3d=None,
        pane_3d=PaneView(),
    )


def generated_3d_hosted(state: VisualizerState, url: str) -> VisualizerState:
    """Swap the freshly generated image for its hosted copy."""
    return replace(state, image_3d=url)


def generation_failed(state: VisualizerState, message: str) -> VisualizerState:
    return replace(state, generation="failed", error_3d=message)


def generation_timed_out(state: VisualizerState) -> VisualizerState:
    if state.generation != "generating":
        return state
    return generation_failed(state, TIMEOUT_MESSAGE)


def regenerate(state: VisualizerState) -> VisualizerState:
    """Clear the current 3D view and start again; ignored while generating."""
    if state.generation == "generating" or state.project is None:
        return state
    if not state.project.source_image:
        return state
    cleared = replace(state, image_3d=None, pane_3d=PaneView())
    return generation_started(cleared)


# ----------------------------------------------------------------------
# Zoom / pan / slider
# ----------------------------------------------------------------------

def _pane(state: VisualizerState, pane: Pane) -> PaneView:
    return state.pane_2d if pane == "2d" else state.pane_3d


def _with_pane(state: VisualizerState, pane: Pane, view: PaneView) -> VisualizerState:
    if pane == "2d":
        return replace(state, pane_2d=view)
    return replace(state, pane_3d=view)


def zoom(state: VisualizerState, pane: Pane, direction: Literal["in", "out"]) -> VisualizerState:
    view = _pane(state, pane)
    step = BUTTON_ZOOM_STEP if direction == "in" else -BUTTON_ZOOM_STEP
    return _with_pane(state, pane, replace(view, zoom=clamp_zoom(view.zoom + step)))


def wheel(state: VisualizerState, pane: Pane, delta_y: float) -> VisualizerState:
    """Mouse wheel zoom; scrolling down zooms out. Disabled in single view."""
    if state.view_mode == "single":
        return state
    view = _pane(state, pane)
    step = -WHEEL_ZOOM_STEP if delta_y > 0 else WHEEL_ZOOM_STEP
    return _with_pane(state, pane, replace(view, zoom=clamp_zoom(view.zoom + step)))


def reset_view(state: VisualizerState, which: Literal["2d", "3d", "all"]) -> VisualizerState:
    if which in ("2d", "all"):
        state = replace(state, pane_2d=PaneView())
    if which in ("3d", "all"):
        state = replace(state, pane_3d=PaneView())
    return state


def drag_start(state: VisualizerState, pane: Pane, x: float, y: float) -> VisualizerState:
    state = _with_pane(state, pane, replace(_pane(state, pane), dragging=True))
    return replace(state, drag_origin=(x, y))


def drag_move(state: VisualizerState, x: float, y: float) -> VisualizerState:
    dx = x - state.drag_origin[0]
    dy = y - state.drag_origin[1]
    for pane in ("2d", "3d"):
        view = _pane(state, pane)
        if view.dragging:
            moved = replace(view, pan_x=view.pan_x + dx, pan_y=view.pan_y + dy)
            return replace(_with_pane(state, pane, moved), drag_origin=(x, y))
    return state


def drag_end(state: VisualizerState) -> VisualizerState:
    return replace(
        state,
        pane_2d=replace(state.pane_2d, dragging=False),
        pane_3d=replace(state.pane_3d, dragging=False),
    )


def set_view_mode(state: VisualizerState, mode: ViewMode) -> VisualizerState:
    state = replace(state, view_mode=mode)
    if mode == "single":
        state = reset_view(state, "all")
    return state


def set_slider(state: VisualizerState, position: float) -> VisualizerState:
    return replace(state, comparison_slider=max(0.0, min(100.0, float(position))))


def toggle_fullscreen(state: VisualizerState) -> VisualizerState:
    return replace(state, is_fullscreen=not state.is_fullscreen)


# ----------------------------------------------------------------------
# Export
# ----------------------------------------------------------------------

def export_filenames(state: VisualizerState) -> dict:
    """
    Download names for the current project: {"2d": ..., "3d": ...}.

    "3d" is only present once a 3D view exists.
    """
    if state.project is None:
        return {}
    name = state.project.name or "project"
    names = {}
    if state.project.rendered_image or state.project.source_image:
        names["2d"] = f"{name}-2d-{state.project_id}.png"
    if state.image_3d:
        names["3d"] = f"{name}-3d-{state.project_id}.png"
    return names
