"""World routes - the JSON API viewers talk to."""

import uuid

from flask import Blueprint, abort, current_app, jsonify, request

from blissnexus.personas import NATION_IDS, PERSONAS

from ..services import get_engine_runner

bp = Blueprint("world", __name__, url_prefix="/api")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description="Expected a JSON object body")
    return data


def _viewer_id(data: dict) -> str:
    viewer_id = data.get("viewer_id") or request.args.get("viewer_id")
    if not viewer_id or not isinstance(viewer_id, str):
        abort(400, description="viewer_id is required")
    return viewer_id


@bp.errorhandler(400)
@bp.errorhandler(404)
def json_error(error):
    return jsonify({"error": error.description}), error.code


@bp.route("/rulers")
def rulers():
    """Static roster of the five rulers."""
    return jsonify([PERSONAS[nid].roster_entry() for nid in NATION_IDS])


@bp.route("/worlds/<world_id>/join", methods=["POST"])
def join(world_id: str):
    """Subscribe a viewer and return the initial world view."""
    data = request.get_json(silent=True) or {}
    viewer_id = data.get("viewer_id") or f"v_{uuid.uuid4().hex[:12]}"
    runner = get_engine_runner()
    session = runner.session(world_id)
    init = runner.run(session.join(viewer_id, data.get("name")))
    return jsonify({**init, "viewer_id": viewer_id})


@bp.route("/worlds/<world_id>/whisper", methods=["POST"])
def whisper(world_id: str):
    """Whisper privately to one ruler and return the reply."""
    data = _json_body()
    viewer_id = _viewer_id(data)
    to, text = data.get("to"), data.get("text")
    if not isinstance(to, str) or not isinstance(text, str) or not text.strip():
        abort(400, description="'to' and 'text' are required")
    if to not in PERSONAS:
        abort(404, description=f"Unknown ruler: {to}")

    runner = get_engine_runner()
    session = runner.session(world_id)
    reply = runner.run(session.whisper(viewer_id, to, text, data.get("name")))
    if reply is None:
        abort(400, description="Whisper was not delivered")
    return jsonify(reply)


@bp.route("/worlds/<world_id>/missions", methods=["POST"])
def request_mission(world_id: str):
    """Issue a fresh mission to the viewer."""
    viewer_id = _viewer_id(_json_body())
    runner = get_engine_runner()
    session = runner.session(world_id)
    mission = runner.run(session.request_mission(viewer_id))
    return jsonify({"type": "init", "mission": mission})


@bp.route("/worlds/<world_id>/reset", methods=["POST"])
def reset(world_id: str):
    """Replace the world with a fresh genesis."""
    runner = get_engine_runner()
    session = runner.session(world_id)
    runner.run(session.reset())
    return jsonify({"type": "world_reset", "year": session.world.year})


@bp.route("/worlds/<world_id>/snapshot")
def snapshot(world_id: str):
    """Current fogged view for a viewer (anonymous if no viewer_id)."""
    runner = get_engine_runner()
    session = runner.session(world_id)
    viewer_id = request.args.get("viewer_id")

    async def build():
        return session.snapshot(viewer_id)

    return jsonify(runner.run(build()))


@bp.route("/worlds/<world_id>/events")
def events(world_id: str):
    """Long-poll for messages queued for a subscribed viewer."""
    viewer_id = _viewer_id({})
    limit = current_app.config["POLL_TIMEOUT"]
    try:
        timeout = min(float(request.args.get("timeout", limit)), limit)
    except ValueError:
        abort(400, description="timeout must be a number")
    runner = get_engine_runner()
    session = runner.session(world_id)
    messages = runner.run(
        session.broadcaster.next_messages(world_id, viewer_id, timeout),
        timeout=timeout + 5,
    )
    if messages is None:
        abort(404, description="Viewer is not subscribed; join first")
    return jsonify({"messages": messages})
