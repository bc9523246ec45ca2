"""Post endpoints: save an MDX post (JSON or multipart), create a Markdown post."""

import logging

from flask import Blueprint, jsonify, request

from services.document import Attachment, SaveRequest
from services.errors import CmsError, ValidationError
from services.github import build_github_store

log = logging.getLogger(__name__)

bp = Blueprint("posts", __name__)


def decode_save_request(req) -> SaveRequest:
    """Turn a JSON or multipart save request into one SaveRequest."""
    if req.mimetype == "multipart/form-data":
        content = req.form.get("content", "")
        file_name = req.form.get("fileName", "")
        upload = req.files.get("image")
        image = None
        if upload is not None and upload.filename:
            image = Attachment(
                name=upload.filename,
                data=upload.read(),
                content_type=upload.mimetype or "application/octet-stream",
            )
    else:
        data = req.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("JSON object body required")
        content = data.get("content", "")
        file_name = data.get("fileName", "")
        image = None

    if not isinstance(content, str):
        raise ValidationError("content must be a string")
    if not isinstance(file_name, str) or not file_name.strip():
        raise ValidationError("fileName is required")
    return SaveRequest(content=content, file_name=file_name.strip(), image=image)


@bp.route("/api/save-mdx", methods=["POST"])
def save_mdx():
    """Commit <fileName>.mdx (and optionally an image) to the blog repository."""
    try:
        store = build_github_store()
        save_req = decode_save_request(request)
        result = store.save_post(save_req.content, save_req.file_name, save_req.image)
    except CmsError as e:
        if not isinstance(e, ValidationError):
            log.error("Error saving file: %s", e.message)
        return jsonify(e.to_dict()), e.status
    return jsonify(result)


@bp.route("/api/create-post", methods=["POST"])
def create_post():
    """Commit a Markdown post whose file name is derived from its title."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "JSON object body required"}), 400
    title = data.get("title", "")
    content = data.get("content", "")
    if not isinstance(title, str) or not isinstance(content, str):
        return jsonify({"success": False, "error": "title and content must be strings"}), 400

    try:
        store = build_github_store()
        result = store.create_post(title, content)
    except CmsError as e:
        log.error("Error creating post: %s", e.message)
        return jsonify({"success": False, "error": e.message}), e.status
    return jsonify(result)
