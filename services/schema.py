"""Post frontmatter schema and validation."""

import datetime

POST_SCHEMA = {
    "title":       {"type": str,  "required": True},
    "date":        {"type": str,  "required": True},    # ISO: YYYY-MM-DD
    "description": {"type": str,  "required": False},
    "author":      {"type": str,  "required": False},
    "category":    {"type": list, "required": False},
    "status":      {"type": str,  "required": False},
}

CATEGORIES = (
    "Technology",
    "Programming",
    "Web Development",
    "Design",
    "Tutorial",
    "Opinion",
    "News",
)

VALID_STATUSES = {"draft", "published", "archived"}


def validate_frontmatter(fm: dict) -> list[str]:
    """Return list of validation errors. Empty list means valid."""
    errors = []

    for field, spec in POST_SCHEMA.items():
        value = fm.get(field)
        if spec.get("required") and value is None:
            errors.append(f"Missing required field: {field!r}")
            continue
        if value is not None and not isinstance(value, spec["type"]):
            expected = spec["type"].__name__
            got = type(value).__name__
            errors.append(f"Field {field!r} must be {expected}, got {got}")

    unknown = sorted(set(fm) - set(POST_SCHEMA))
    for field in unknown:
        errors.append(f"Unknown field: {field!r}")

    date = fm.get("date")
    if isinstance(date, str):
        try:
            datetime.date.fromisoformat(date)
        except ValueError:
            errors.append(f"Field 'date' must be an ISO date (YYYY-MM-DD), got {date!r}")

    status = fm.get("status")
    if isinstance(status, str) and status not in VALID_STATUSES:
        errors.append(f"Field 'status' must be one of {sorted(VALID_STATUSES)}, got {status!r}")

    category = fm.get("category")
    if isinstance(category, list):
        for c in category:
            if c not in CATEGORIES:
                errors.append(f"Unknown category: {c!r}")
        names = [c for c in category if isinstance(c, str)]
        if len(set(names)) != len(names):
            errors.append("Field 'category' must not contain duplicates")

    return errors
