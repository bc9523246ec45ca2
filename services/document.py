"""Post documents: frontmatter + body value types and the MDX wire form.

A serialized post looks like::

    ---
    title: "Hello"
    date: "2026-01-01"
    description: ""
    author: "Sam"
    category: [Technology, Design]
    status: draft
    ---

    Body text.

String fields are double-quoted. Backslashes and line breaks are escaped so they
survive a round trip; an embedded double quote is written as is and does not.
parse_frontmatter() returns empty frontmatter for such documents instead of
raising.
"""

import datetime as _dt
from dataclasses import dataclass, field

import yaml

from services.schema import POST_SCHEMA

_DELIMITER = "---"


def _today() -> str:
    return _dt.date.today().isoformat()


@dataclass
class Frontmatter:
    title: str = ""
    date: str = field(default_factory=_today)
    description: str = ""
    author: str = ""
    category: list[str] = field(default_factory=list)
    status: str = "draft"

    @classmethod
    def from_dict(cls, data: dict) -> "Frontmatter":
        """Build from parsed YAML, ignoring unknown keys and filling defaults."""
        kwargs = {}
        for key in POST_SCHEMA:
            value = data.get(key)
            if value is None:
                continue
            if key == "category":
                seen = []
                for c in value if isinstance(value, list) else [value]:
                    c = str(c)
                    if c not in seen:
                        seen.append(c)
                value = seen
            else:
                value = str(value)
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "date": self.date,
            "description": self.description,
            "author": self.author,
            "category": list(self.category),
            "status": self.status,
        }


@dataclass
class Attachment:
    """An uploaded binary (the post image), passed through untouched."""

    name: str
    data: bytes
    content_type: str = "application/octet-stream"


@dataclass
class Draft:
    frontmatter: Frontmatter = field(default_factory=Frontmatter)
    body: str = ""
    file_name: str = ""
    pending_image: Attachment | None = None

    def to_dict(self) -> dict:
        return {
            "frontmatter": self.frontmatter.to_dict(),
            "body": self.body,
            "fileName": self.file_name,
            "pendingImage": self.pending_image.name if self.pending_image else None,
        }


@dataclass
class SaveRequest:
    """A decoded save-endpoint request: one document plus an optional image."""

    content: str
    file_name: str
    image: Attachment | None = None


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")
    return f'"{escaped}"'


def serialize_frontmatter(fm: Frontmatter) -> str:
    """Render the delimited metadata block (without the trailing blank line)."""
    lines = [
        _DELIMITER,
        f"title: {_quote(fm.title)}",
        f"date: {_quote(fm.date)}",
        f"description: {_quote(fm.description)}",
        f"author: {_quote(fm.author)}",
        f"category: [{', '.join(fm.category)}]",
        f"status: {fm.status}",
        _DELIMITER,
    ]
    return "\n".join(lines)


def serialize_document(draft: Draft) -> str:
    """Assemble the full MDX text sent to the save gateway."""
    return f"{serialize_frontmatter(draft.frontmatter)}\n\n{draft.body}"


def parse_frontmatter(content: str) -> tuple[dict, str]:
    """Extract YAML frontmatter and body from file content."""
    if not content.startswith(_DELIMITER):
        return {}, content

    lines = content.split("\n")
    end_idx = None
    for i, line in enumerate(lines[1:], 1):
        if line.strip() == _DELIMITER:
            end_idx = i
            break

    if end_idx is None:
        return {}, content

    try:
        raw = yaml.safe_load("\n".join(lines[1:end_idx])) or {}
    except yaml.YAMLError:
        return {}, content
    if not isinstance(raw, dict):
        return {}, content

    # Unquoted dates come back from YAML as date objects
    frontmatter = {
        k: v.isoformat() if isinstance(v, _dt.date | _dt.datetime) else v
        for k, v in raw.items()
    }
    # Exactly one blank separator line; any further leading blank lines belong to the body
    body = "\n".join(lines[end_idx + 1 :]).removeprefix("\n")
    return frontmatter, body


def parse_document(content: str) -> tuple[Frontmatter, str]:
    """Inverse of serialize_document() for documents without embedded quotes."""
    fm, body = parse_frontmatter(content)
    return Frontmatter.from_dict(fm), body
