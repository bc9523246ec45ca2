"""Editor sessions: draft state, save/generate cycles, notifications.

Each session owns one Draft and two independent request cycles:

    save:       idle → editing → saving → saved | save_failed
    generation: idle → generating → generated | generate_failed

Any edit moves a cycle that is not in flight back to "editing". Only one save
and one generation may be in flight per session; a second call while one is
running is rejected without side effects. Gateway calls run outside the lock,
so edits keep working while a request is outstanding.

A successful generation overwrites title, description and body. Unsaved body
text is lost.
"""

import logging
import threading
import uuid
from dataclasses import asdict, dataclass

from services.completion import build_completion_client, parse_generated_text
from services.document import Attachment, Draft, Frontmatter, serialize_document
from services.errors import CmsError, ValidationError
from services.github import build_github_store, validate_file_name
from services.renderer import render
from services.schema import CATEGORIES, POST_SCHEMA, validate_frontmatter

log = logging.getLogger(__name__)

IDLE = "idle"
EDITING = "editing"
SAVING = "saving"
SAVED = "saved"
SAVE_FAILED = "save_failed"
GENERATING = "generating"
GENERATED = "generated"
GENERATE_FAILED = "generate_failed"

TABLE_TEMPLATE = """
| Column 1 | Column 2 | Column 3 |
|----------|----------|----------|
| Row 1    | Data     | Data     |
| Row 2    | Data     | Data     |
"""

MATH_TEMPLATE = """
$$
\\frac{1}{\\sqrt{2\\pi\\sigma^2}} e^{-\\frac{(x-\\mu)^2}{2\\sigma^2}}
$$
"""

# Accepted spellings for non-frontmatter draft fields
_DRAFT_FIELDS = {"body": "body", "content": "body", "fileName": "file_name", "file_name": "file_name"}


@dataclass
class Notification:
    id: str
    level: str  # success | error | info
    title: str
    message: str


class EditorController:
    """Owns one draft and drives the save and generation gateways for it."""

    def __init__(
        self,
        save_gateway=None,
        generation_gateway=None,
        draft: Draft | None = None,
        save_gateway_factory=None,
        generation_gateway_factory=None,
    ):
        self.draft = draft or Draft()
        self.save_state = IDLE
        self.generation_state = IDLE
        self.last_error: CmsError | None = None
        self.notifications: list[Notification] = []
        self._save_gateway = save_gateway
        self._generation_gateway = generation_gateway
        self._save_gateway_factory = save_gateway_factory or build_github_store
        self._generation_gateway_factory = generation_gateway_factory or build_completion_client
        self._save_in_flight = False
        self._generate_in_flight = False
        self._lock = threading.Lock()

    # ── Internal helpers (call with the lock held) ───────────────────────

    def _touch(self) -> None:
        if not self._save_in_flight:
            self.save_state = EDITING
        if not self._generate_in_flight:
            self.generation_state = EDITING

    def _notify(self, level: str, title: str, message: str) -> Notification:
        note = Notification(id=uuid.uuid4().hex[:8], level=level, title=title, message=message)
        self.notifications.append(note)
        return note

    def _failure(self, err: CmsError, message: str) -> dict:
        self.last_error = err
        self._notify("error", "Error", message)
        return {"ok": False, "error": err.message, "kind": err.kind, "status": err.status}

    # ── Field edits ──────────────────────────────────────────────────────

    def update(self, /, **fields) -> dict:
        """Set frontmatter fields, body and/or file name. Last write wins.

        Frontmatter edits are checked against the post schema as a whole, so an
        invalid value leaves the draft untouched.
        """
        fm_updates = {}
        draft_updates = {}
        for key, value in fields.items():
            if key in _DRAFT_FIELDS:
                if not isinstance(value, str):
                    raise ValidationError(f"{key} must be a string")
                draft_updates[_DRAFT_FIELDS[key]] = value
            elif key in POST_SCHEMA:
                if value is None:
                    raise ValidationError(f"{key} must not be null")
                fm_updates[key] = _dedupe(value) if key == "category" else value
            else:
                raise ValidationError(f"Unknown field: {key!r}")

        with self._lock:
            if fm_updates:
                errors = validate_frontmatter({**self.draft.frontmatter.to_dict(), **fm_updates})
                if errors:
                    raise ValidationError(errors[0], details="; ".join(errors))
            for key, value in fm_updates.items():
                setattr(self.draft.frontmatter, key, value)
            for key, value in draft_updates.items():
                setattr(self.draft, key, value)
            self._touch()
            return self.draft.to_dict()

    def set_body(self, body: str) -> dict:
        return self.update(body=body)

    def set_file_name(self, file_name: str) -> dict:
        return self.update(fileName=file_name)

    def add_category(self, category: str) -> list[str]:
        """Append a category unless already present."""
        if category not in CATEGORIES:
            raise ValidationError(f"Unknown category: {category!r}")
        with self._lock:
            if category not in self.draft.frontmatter.category:
                self.draft.frontmatter.category.append(category)
            self._touch()
            return list(self.draft.frontmatter.category)

    def remove_category(self, category: str) -> list[str]:
        """Drop a category; no-op when absent. Re-adding it appends at the end."""
        with self._lock:
            if category in self.draft.frontmatter.category:
                self.draft.frontmatter.category.remove(category)
            self._touch()
            return list(self.draft.frontmatter.category)

    def attach_image(self, image: Attachment) -> Notification:
        with self._lock:
            self.draft.pending_image = image
            self._touch()
            return self._notify(
                "info", "Image selected", "Image will be uploaded when you save the post."
            )

    def clear_image(self) -> None:
        with self._lock:
            self.draft.pending_image = None
            self._touch()

    def insert_table(self) -> str:
        with self._lock:
            self.draft.body += "\n" + TABLE_TEMPLATE + "\n"
            self._touch()
            return self.draft.body

    def insert_math_block(self) -> str:
        with self._lock:
            self.draft.body += "\n" + MATH_TEMPLATE + "\n"
            self._touch()
            return self.draft.body

    # ── Preview ──────────────────────────────────────────────────────────

    def preview(self) -> dict:
        with self._lock:
            body = self.draft.body
            fm = self.draft.frontmatter.to_dict()
        return {"frontmatter": fm, "html": render(body)}

    # ── Save ─────────────────────────────────────────────────────────────

    def save(self) -> dict:
        """Serialize the draft and commit it through the save gateway."""
        with self._lock:
            if self._save_in_flight:
                return {"ok": False, "rejected": True, "error": "Save already in progress"}
            try:
                file_name = validate_file_name(self.draft.file_name)
            except ValidationError as e:
                self.save_state = SAVE_FAILED
                message = "Please enter a file name." if not self.draft.file_name.strip() else e.message
                return self._failure(e, message)
            document = serialize_document(self.draft)
            image = self.draft.pending_image
            self._save_in_flight = True
            self.save_state = SAVING
        log.debug("Saving %s.mdx", file_name)

        try:
            if self._save_gateway is None:
                self._save_gateway = self._save_gateway_factory()
            result = self._save_gateway.save_post(document, file_name, image)
        except CmsError as e:
            with self._lock:
                self._save_in_flight = False
                self.save_state = SAVE_FAILED
                return self._failure(e, f"Failed to save file: {e.message}")
        except Exception as e:  # noqa: BLE001
            log.exception("Unexpected error saving %s", file_name)
            with self._lock:
                self._save_in_flight = False
                self.save_state = SAVE_FAILED
                return self._failure(CmsError(str(e)), "Failed to save file. Please try again.")

        with self._lock:
            self._save_in_flight = False
            self.save_state = SAVED
            self.last_error = None
            self._notify("success", "Success", f"File {file_name}.mdx saved successfully.")
        return {"ok": True, **result}

    # ── Generate ─────────────────────────────────────────────────────────

    def generate(self, prompt: str) -> dict:
        """Generate title, description and body from a topic. Overwrites the body."""
        with self._lock:
            if self._generate_in_flight:
                return {"ok": False, "rejected": True, "error": "Generation already in progress"}
            if not prompt or not prompt.strip():
                self.generation_state = GENERATE_FAILED
                return self._failure(
                    ValidationError("Prompt is required"), "Please enter an article idea."
                )
            self._generate_in_flight = True
            self.generation_state = GENERATING
        log.debug("Generating article for prompt %r", prompt[:60])

        try:
            if self._generation_gateway is None:
                self._generation_gateway = self._generation_gateway_factory()
            text = self._generation_gateway.complete(prompt)
        except CmsError as e:
            with self._lock:
                self._generate_in_flight = False
                self.generation_state = GENERATE_FAILED
                return self._failure(e, f"Failed to generate article: {e.message}")
        except Exception as e:  # noqa: BLE001
            log.exception("Unexpected error generating article")
            with self._lock:
                self._generate_in_flight = False
                self.generation_state = GENERATE_FAILED
                return self._failure(
                    CmsError(str(e)), "Failed to generate article. Please try again."
                )

        parsed = parse_generated_text(text)
        with self._lock:
            self.draft.frontmatter.title = parsed["title"]
            self.draft.frontmatter.description = parsed["description"]
            self.draft.body = parsed["content"]
            self._generate_in_flight = False
            self.generation_state = GENERATED
            self.last_error = None
            self._notify("success", "Success", "Article generated successfully.")
        return {"ok": True, **parsed}

    # ── Notifications / snapshot ─────────────────────────────────────────

    def dismiss(self, notification_id: str) -> bool:
        with self._lock:
            before = len(self.notifications)
            self.notifications = [n for n in self.notifications if n.id != notification_id]
            return len(self.notifications) != before

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "draft": self.draft.to_dict(),
                "saveState": self.save_state,
                "generationState": self.generation_state,
                "notifications": [asdict(n) for n in self.notifications],
            }


def _dedupe(value):
    """Drop repeated categories, keeping first occurrence. Non-lists pass through."""
    if not isinstance(value, list):
        return value
    unique = []
    for c in value:
        if c not in unique:
            unique.append(c)
    return unique


# ── Session registry ─────────────────────────────────────────────────────────

_SESSIONS: dict[str, EditorController] = {}
_SESSIONS_LOCK = threading.Lock()


def create_session(**kwargs) -> tuple[str, EditorController]:
    """Start a new editor session with an empty draft dated today."""
    session_id = uuid.uuid4().hex[:12]
    controller = EditorController(draft=Draft(frontmatter=Frontmatter()), **kwargs)
    with _SESSIONS_LOCK:
        _SESSIONS[session_id] = controller
    log.info("Opened editor session %s", session_id)
    return session_id, controller


def get_session(session_id: str) -> EditorController | None:
    with _SESSIONS_LOCK:
        return _SESSIONS.get(session_id)


def close_session(session_id: str) -> bool:
    """Discard a session and its unsaved draft. In-flight requests finish unobserved."""
    with _SESSIONS_LOCK:
        removed = _SESSIONS.pop(session_id, None)
    if removed is not None:
        log.info("Closed editor session %s", session_id)
    return removed is not None
