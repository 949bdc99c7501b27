"""
Document Editor Workflow.

State machine for the single in-progress draft of one invoice or
quotation: ``editing`` <-> ``previewing``, save gating, and the
print/export handoff.

The preview layout is the one that gets printed or exported.  Requesting
output while editing switches to preview first and defers the output
until the renderer reports that the layout has settled via
``layout_ready()``.  There is no fixed delay.

Navigating away (``back()``) discards the draft without saving.
Returning to editing drops any output still waiting for a layout.

The editor never holds a document without line items: the constructor
raises ``EmptyDocumentError`` for one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable
from uuid import UUID, uuid4

from invoicing_kernel.domain import documents as doc_ops
from invoicing_kernel.domain.access_policy import Action, is_permitted
from invoicing_kernel.domain.accounts import User
from invoicing_kernel.domain.documents import FinancialDocument
from invoicing_kernel.domain.totals import DocumentTotals
from invoicing_kernel.exceptions import MissingClientNameError
from invoicing_kernel.logging_config import LogContext, get_logger

logger = get_logger("domain.editor")


@dataclass(frozen=True)
class Guard:
    """A condition for a transition."""
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def find(self, from_state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None


class EditorMode(Enum):
    EDITING = "editing"
    PREVIEWING = "previewing"


class EntryPoint(Enum):
    """How the editor was opened from a list view."""
    CREATE = "create"
    EDIT = "edit"
    VIEW = "view"
    DOWNLOAD = "download"


class OutputTarget(Enum):
    PRINT = "print"
    PDF = "pdf"


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

NOT_VIEWER = Guard(
    name="not_viewer",
    description="Acting user is not a viewer",
)


EDITOR_WORKFLOW = Workflow(
    name="document_editor",
    description="Edit / preview lifecycle of one document draft",
    initial_state=EditorMode.EDITING.value,
    states=(EditorMode.EDITING.value, EditorMode.PREVIEWING.value),
    transitions=(
        Transition("editing", "previewing", action="toggle", guard=NOT_VIEWER),
        Transition("previewing", "editing", action="toggle", guard=NOT_VIEWER),
        Transition("editing", "previewing", action="prepare_output"),
    ),
)


@dataclass(frozen=True)
class SaveOutcome:
    """Result of ``DocumentEditor.save``.

    ``message`` is set for validation failures; a failed remote call leaves
    it empty and ``saved`` False.
    """
    saved: bool
    document: FinancialDocument | None = None
    message: str = ""
    error_code: str | None = None


SaveHandler = Callable[[FinancialDocument], "FinancialDocument | None"]
OutputHandler = Callable[[OutputTarget, FinancialDocument], None]


class DocumentEditor:
    """
    Owns one draft document and its edit/preview mode.

    Viewers, and the view/download entry points, open in preview.  Viewers
    can never leave preview, never save and never mutate the draft.
    """

    def __init__(
        self,
        document: FinancialDocument,
        user: User,
        on_save: SaveHandler,
        on_output: OutputHandler | None = None,
        entry_point: EntryPoint = EntryPoint.EDIT,
        requested_mode: EditorMode | str | None = None,
        id_factory: Callable[[], UUID] = uuid4,
    ):
        self._document = doc_ops.require_line_items(document)
        self._user = user
        self._on_save = on_save
        self._on_output = on_output
        self._id_factory = id_factory
        self._is_saving = False
        self._abandoned = False
        self._layout_settled = False
        self._pending_output: OutputTarget | None = None

        if requested_mode is not None and not isinstance(requested_mode, EditorMode):
            requested_mode = _parse_mode(requested_mode)

        if (
            user.is_viewer
            or entry_point in (EntryPoint.VIEW, EntryPoint.DOWNLOAD)
            or requested_mode is EditorMode.PREVIEWING
        ):
            self._mode = EditorMode.PREVIEWING
        else:
            self._mode = EditorMode(EDITOR_WORKFLOW.initial_state)

        if entry_point is EntryPoint.DOWNLOAD:
            self._pending_output = OutputTarget.PDF

        self._log(
            logging.DEBUG,
            "editor_opened",
            {
                "kind": document.kind.value,
                "mode": self._mode.value,
                "entry_point": entry_point.value,
                "role": user.role.value,
            },
        )

    def _log(self, level: int, event: str, fields: dict | None = None) -> None:
        with LogContext.bind(
            actor_id=self._user.id or self._user.name,
            document_id=self._document.key,
        ):
            logger.log(level, event, extra=fields)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def document(self) -> FinancialDocument:
        return self._document

    @property
    def mode(self) -> EditorMode:
        return self._mode

    @property
    def totals(self) -> DocumentTotals:
        return self._document.totals

    @property
    def is_saving(self) -> bool:
        return self._is_saving

    @property
    def is_abandoned(self) -> bool:
        return self._abandoned

    @property
    def has_pending_output(self) -> bool:
        return self._pending_output is not None

    @property
    def can_toggle(self) -> bool:
        """The edit/preview toggle exists for non-viewers only."""
        return not self._user.is_viewer and not self._is_saving

    @property
    def can_save(self) -> bool:
        return (
            self._mode is EditorMode.EDITING
            and is_permitted(self._user.role, Action.EDIT_DOCUMENT)
            and not self._is_saving
        )

    @property
    def can_edit(self) -> bool:
        return (
            self._mode is EditorMode.EDITING
            and is_permitted(self._user.role, Action.EDIT_DOCUMENT)
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _apply(self, action: str) -> bool:
        transition = EDITOR_WORKFLOW.find(self._mode.value, action)
        if transition is None:
            return False
        if transition.guard is NOT_VIEWER and self._user.is_viewer:
            self._log(logging.DEBUG, "editor_transition_blocked", {"action": action, "guard": NOT_VIEWER.name})
            return False
        self._mode = EditorMode(transition.to_state)
        self._layout_settled = False
        if self._mode is EditorMode.EDITING and self._pending_output is not None:
            self._log(logging.DEBUG, "editor_output_dropped", {"target": self._pending_output.value})
            self._pending_output = None
        self._log(
            logging.DEBUG,
            "editor_transition",
            {"action": action, "from": transition.from_state, "to": transition.to_state},
        )
        return True

    def toggle(self) -> EditorMode:
        """Switch between editing and previewing (non-viewers only)."""
        if self.can_toggle:
            self._apply("toggle")
        return self._mode

    def layout_ready(self) -> None:
        """
        Signal that the current layout has finished rendering.

        Runs a deferred print/export, if one is waiting and the editor is
        in preview.
        """
        self._layout_settled = True
        if self._pending_output is not None and self._mode is EditorMode.PREVIEWING:
            target = self._pending_output
            self._pending_output = None
            self._emit_output(target)

    def request_print(self) -> bool:
        """Print the preview layout.  Returns True if output ran immediately."""
        return self._request_output(OutputTarget.PRINT)

    def request_export(self) -> bool:
        """Export the preview layout as PDF.  Returns True if output ran immediately."""
        return self._request_output(OutputTarget.PDF)

    def _request_output(self, target: OutputTarget) -> bool:
        if self._mode is EditorMode.EDITING:
            self._apply("prepare_output")
        if self._layout_settled:
            self._emit_output(target)
            return True
        self._pending_output = target
        self._log(logging.DEBUG, "editor_output_deferred", {"target": target.value})
        return False

    def _emit_output(self, target: OutputTarget) -> None:
        self._log(logging.INFO, "document_output_requested", {"target": target.value})
        if self._on_output is not None:
            self._on_output(target, self._document)

    def back(self) -> None:
        """Leave the editor.  Unsaved edits are discarded."""
        self._abandoned = True
        self._pending_output = None
        self._log(logging.DEBUG, "editor_abandoned")

    # -------------------------------------------------------------------------
    # Draft mutations (ignored for viewers and while previewing)
    # -------------------------------------------------------------------------

    def set_field(self, field_name: str, value: object) -> bool:
        required = Action.EDIT_STATUS if field_name == "status" else Action.EDIT_DOCUMENT
        if self._mode is not EditorMode.EDITING or not is_permitted(self._user.role, required):
            return False
        self._document = doc_ops.set_field(self._document, field_name, value)
        return True

    def add_line_item(self) -> UUID | None:
        """Append a line item; returns its id, or None when not allowed."""
        if not self.can_edit:
            return None
        self._document = doc_ops.add_line_item(self._document, self._id_factory)
        return self._document.items[-1].id

    def remove_line_item(self, item_id: UUID) -> bool:
        if not self.can_edit:
            return False
        before = self._document
        self._document = doc_ops.remove_line_item(self._document, item_id)
        return self._document is not before

    def update_line_item(self, item_id: UUID, field_name: str, value: object) -> bool:
        if not self.can_edit:
            return False
        self._document = doc_ops.update_line_item(self._document, item_id, field_name, value)
        return True

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def save(self) -> SaveOutcome:
        """
        Validate and hand the draft to the save handler.

        Blocked (no handler call) when not in edit mode, for viewers, while
        another save is running, or when the client name is empty.
        """
        if not self.can_save:
            return SaveOutcome(saved=False, message="Saving is not available in this mode")

        if not self._document.client_name.strip():
            error = MissingClientNameError(self._document.number)
            self._log(logging.INFO, "document_save_rejected", {"reason": error.code})
            return SaveOutcome(saved=False, message=str(error), error_code=error.code)

        self._is_saving = True
        try:
            persisted = self._on_save(self._document)
        finally:
            self._is_saving = False

        if persisted is None:
            return SaveOutcome(saved=False)
        self._document = persisted
        return SaveOutcome(saved=True, document=persisted)


def _parse_mode(value: str) -> EditorMode:
    """Accept ``edit``/``preview`` as well as the enum values."""
    text = str(value).strip().lower()
    if text in ("preview", "previewing"):
        return EditorMode.PREVIEWING
    return EditorMode.EDITING
