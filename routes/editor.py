"""Editor session endpoints: draft edits, categories, preview, save, generate."""

from flask import Blueprint, jsonify, request

from services.document import Attachment
from services.editor import close_session, create_session, get_session
from services.errors import ValidationError

bp = Blueprint("editor", __name__)


def _session_or_404(session_id):
    controller = get_session(session_id)
    if controller is None:
        return None, (jsonify({"error": f"Unknown session: {session_id}"}), 404)
    return controller, None


@bp.route("/api/editor/sessions", methods=["POST"])
def session_create():
    """Open a session with an empty draft."""
    session_id, controller = create_session()
    return jsonify({"id": session_id, **controller.snapshot()}), 201


@bp.route("/api/editor/sessions/<session_id>", methods=["GET"])
def session_get(session_id):
    """Draft, cycle states and pending notifications."""
    controller, err = _session_or_404(session_id)
    if err:
        return err
    return jsonify({"id": session_id, **controller.snapshot()})


@bp.route("/api/editor/sessions/<session_id>", methods=["PATCH"])
def session_update(session_id):
    """Edit any of: frontmatter fields, body, fileName."""
    controller, err = _session_or_404(session_id)
    if err:
        return err
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object body required"}), 400
    try:
        draft = controller.update(**data)
    except ValidationError as e:
        return jsonify({"error": e.message}), 400
    return jsonify(draft)


@bp.route("/api/editor/sessions/<session_id>", methods=["DELETE"])
def session_close(session_id):
    if not close_session(session_id):
        return jsonify({"error": f"Unknown session: {session_id}"}), 404
    return jsonify({"ok": True})


@bp.route("/api/editor/sessions/<session_id>/categories", methods=["POST"])
def category_add(session_id):
    controller, err = _session_or_404(session_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object body required"}), 400
    try:
        categories = controller.add_category(data.get("category", ""))
    except ValidationError as e:
        return jsonify({"error": e.message}), 400
    return jsonify({"category": categories})


@bp.route("/api/editor/sessions/<session_id>/categories/<category>", methods=["DELETE"])
def category_remove(session_id, category):
    controller, err = _session_or_404(session_id)
    if err:
        return err
    return jsonify({"category": controller.remove_category(category)})


@bp.route("/api/editor/sessions/<session_id>/image", methods=["POST"])
def image_attach(session_id):
    """Stage an image; it is committed with the next save."""
    controller, err = _session_or_404(session_id)
    if err:
        return err
    upload = request.files.get("image")
    if upload is None or not upload.filename:
        return jsonify({"error": "image file required"}), 400
    note = controller.attach_image(
        Attachment(
            name=upload.filename,
            data=upload.read(),
            content_type=upload.mimetype or "application/octet-stream",
        )
    )
    return jsonify({"ok": True, "notification": note.id})


@bp.route("/api/editor/sessions/<session_id>/image", methods=["DELETE"])
def image_clear(session_id):
    controller, err = _session_or_404(session_id)
    if err:
        return err
    controller.clear_image()
    return jsonify({"ok": True})


@bp.route("/api/editor/sessions/<session_id>/insert/<template>", methods=["POST"])
def insert_template(session_id, template):
    """Append the table or math block template to the body."""
    controller, err = _session_or_404(session_id)
    if err:
        return err
    if template == "table":
        body = controller.insert_table()
    elif template == "math":
        body = controller.insert_math_block()
    else:
        return jsonify({"error": f"Unknown template: {template}"}), 400
    return jsonify({"body": body})


@bp.route("/api/editor/sessions/<session_id>/preview")
def preview(session_id):
    controller, err = _session_or_404(session_id)
    if err:
        return err
    return jsonify(controller.preview())


@bp.route("/api/editor/sessions/<session_id>/save", methods=["POST"])
def save(session_id):
    """Commit the draft. 409 when a save is already running for this session."""
    controller, err = _session_or_404(session_id)
    if err:
        return err
    result = controller.save()
    if result.get("rejected"):
        return jsonify(result), 409
    if not result["ok"]:
        return jsonify(result), result["status"]
    return jsonify(result)


@bp.route("/api/editor/sessions/<session_id>/generate", methods=["POST"])
def generate(session_id):
    """Generate title, description and body. Replaces the current body."""
    controller, err = _session_or_404(session_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object body required"}), 400
    prompt = data.get("prompt", "")
    if not isinstance(prompt, str):
        return jsonify({"error": "prompt must be a string"}), 400
    result = controller.generate(prompt)
    if result.get("rejected"):
        return jsonify(result), 409
    if not result["ok"]:
        return jsonify(result), result["status"]
    return jsonify(result)


@bp.route("/api/editor/sessions/<session_id>/notifications/<notification_id>", methods=["DELETE"])
def notification_dismiss(session_id, notification_id):
    controller, err = _session_or_404(session_id)
    if err:
        return err
    if not controller.dismiss(notification_id):
        return jsonify({"error": "Notification not found"}), 404
    return jsonify({"ok": True})
