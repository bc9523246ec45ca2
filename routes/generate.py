"""Article generation endpoint."""

import logging

from flask import Blueprint, jsonify, request

from services.completion import build_completion_client
from services.errors import CmsError

log = logging.getLogger(__name__)

bp = Blueprint("generate", __name__)


@bp.route("/api/gen-article", methods=["POST"])
def gen_article():
    """Draft {title, description, content} for a topic prompt."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"message": "JSON object body required"}), 400
    prompt = data.get("prompt", "")
    if not isinstance(prompt, str) or not prompt.strip():
        return jsonify({"message": "Prompt is required"}), 400

    try:
        client = build_completion_client()
        result = client.generate(prompt)
    except CmsError as e:
        log.error("Error generating article: %s", e.message)
        return jsonify({"message": e.message}), e.status
    return jsonify(result)
