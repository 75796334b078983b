"""Label panel for one human feedback sample.

The panel moves ``closed -> open -> submitting -> (closed | error)``. It only
closes after the update has been committed; a failed update leaves it open in
the ``error`` state with the message shown, and the user may resubmit or close.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ContextManager, Dict, FrozenSet, Iterable, Optional

import gradio as gr
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from model_reviews.catalog import (
    QUALITY_MAX,
    QUALITY_MIN,
    LabelValidationError,
    NotFound,
    build_label_update,
    update_labels,
)
from model_reviews.db import session_scope

logger = logging.getLogger(__name__)

UNRATED_CHOICE = "Unrated"
QUALITY_CHOICES = [UNRATED_CHOICE] + [str(value) for value in range(QUALITY_MIN, QUALITY_MAX + 1)]
SUBMIT_LABEL = "Save labels"
SUBMITTING_LABEL = "Saving..."
OPEN_TOGGLE_LABEL = "Label sample"
CLOSE_TOGGLE_LABEL = "Close label panel"


class LabelPanelState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    SUBMITTING = "submitting"
    ERROR = "error"


_ALLOWED_TRANSITIONS: Dict[LabelPanelState, FrozenSet[LabelPanelState]] = {
    LabelPanelState.CLOSED: frozenset({LabelPanelState.OPEN}),
    LabelPanelState.OPEN: frozenset({LabelPanelState.CLOSED, LabelPanelState.SUBMITTING}),
    LabelPanelState.SUBMITTING: frozenset({LabelPanelState.CLOSED, LabelPanelState.ERROR}),
    LabelPanelState.ERROR: frozenset({LabelPanelState.CLOSED, LabelPanelState.SUBMITTING}),
}


@dataclass(frozen=True)
class LabelOutcome:
    state: LabelPanelState
    message: str


def coerce_state(raw_state: object) -> LabelPanelState:
    try:
        return LabelPanelState(str(raw_state or LabelPanelState.CLOSED.value))
    except ValueError:
        logger.warning("Unknown label panel state %r, treating as closed", raw_state)
        return LabelPanelState.CLOSED


def transition(current: LabelPanelState, target: LabelPanelState) -> LabelPanelState:
    if target not in _ALLOWED_TRANSITIONS[current]:
        raise ValueError(f"Label panel cannot move from {current.value} to {target.value}")
    return target


def panel_title(num_id: int) -> str:
    return f"### Label sample #{num_id}"


def quality_choice(quality: Optional[int]) -> str:
    return UNRATED_CHOICE if quality is None else str(quality)


def _quality_from_choice(raw_value: object) -> object:
    return None if raw_value == UNRATED_CHOICE else raw_value


def submit_label(
    feedback_id: Optional[str],
    quality: object,
    tags: Iterable[object] | str | None,
    nsfw: object,
    scope_factory: Optional[Callable[[], ContextManager[Session]]] = None,
) -> LabelOutcome:
    """Store the form values on one sample with a single update."""
    scope_factory = scope_factory or session_scope
    if not feedback_id:
        return LabelOutcome(LabelPanelState.ERROR, "No sample selected.")
    try:
        update = build_label_update(_quality_from_choice(quality), tags, nsfw)
        with scope_factory() as session:
            update_labels(session, feedback_id, update)
    except LabelValidationError as exc:
        return LabelOutcome(LabelPanelState.ERROR, str(exc))
    except NotFound:
        return LabelOutcome(LabelPanelState.ERROR, f"Sample {feedback_id} no longer exists.")
    except SQLAlchemyError:
        logger.exception("Saving labels failed id=%s", feedback_id)
        return LabelOutcome(LabelPanelState.ERROR, "Could not save labels, please try again.")
    return LabelOutcome(LabelPanelState.CLOSED, "Labels saved.")


def _toggle_label_panel(raw_state: str):
    state = coerce_state(raw_state)
    if state == LabelPanelState.SUBMITTING:
        return state.value, gr.update(), gr.update(), gr.update()
    target = LabelPanelState.OPEN if state == LabelPanelState.CLOSED else LabelPanelState.CLOSED
    state = transition(state, target)
    is_open = state == LabelPanelState.OPEN
    return (
        state.value,
        gr.update(visible=is_open),
        "",
        gr.update(value=CLOSE_TOGGLE_LABEL if is_open else OPEN_TOGGLE_LABEL),
    )


def _begin_label_submit(raw_state: str):
    state = coerce_state(raw_state)
    if state not in (LabelPanelState.OPEN, LabelPanelState.ERROR):
        return state.value, gr.update(), gr.update()
    state = transition(state, LabelPanelState.SUBMITTING)
    return state.value, gr.update(value=SUBMITTING_LABEL, interactive=False), SUBMITTING_LABEL


def _finish_label_submit(raw_state: str, feedback_id: Optional[str], quality, tags, nsfw):
    state = coerce_state(raw_state)
    if state != LabelPanelState.SUBMITTING:
        return state.value, gr.update(), gr.update(), gr.update(), gr.update()
    outcome = submit_label(feedback_id, quality, tags, nsfw)
    state = transition(state, outcome.state)
    closed = state == LabelPanelState.CLOSED
    status = outcome.message if closed else f"**Error:** {outcome.message}"
    return (
        state.value,
        gr.update(visible=not closed),
        gr.update(value=SUBMIT_LABEL, interactive=True),
        status,
        gr.update(value=OPEN_TOGGLE_LABEL if closed else CLOSE_TOGGLE_LABEL),
    )
