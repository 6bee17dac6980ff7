"""
Stub backends for integration tests.

Stands up two small Flask applications -- one per service under test --
on ephemeral localhost ports using Werkzeug's threaded server.  The
stubs implement just enough of each API for the collaboration workflow:
they enforce bearer tokens, keep ids in memory and answer with the same
body shapes as the real services (top-level ids from the identity
service, ``data``-wrapped ids from the project service).

Key SDET Concepts Demonstrated:
- In-process fakes of external collaborators instead of live stacks
- Behaviour toggles on the stub to drive failure paths
- Session isolation: every test gets freshly started services
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from types import SimpleNamespace

import pytest
from faker import Faker
from flask import Flask, Response, jsonify, request
from werkzeug.serving import make_server

from collab_loadtest.config import TestingConfig

fake = Faker()


def _bearer(store: SimpleNamespace) -> str | None:
    """Return the user id behind the request's bearer token, if valid."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return store.tokens.get(header.removeprefix("Bearer "))


def create_user_service(store: SimpleNamespace) -> Flask:
    """Identity service stub: users, test tokens, workspaces, invitations."""
    app = Flask("user_service_stub")

    @app.post("/api/users")
    def create_user():
        payload = request.get_json(silent=True) or {}
        if not payload.get("email") or not payload.get("googleId"):
            return jsonify({"error": "email and googleId are required"}), 400
        user_id = fake.uuid4()
        store.users[user_id] = payload["email"]
        return jsonify({"userId": user_id, "email": payload["email"]}), 201

    @app.get("/api/users/test/<user_id>")
    def issue_test_token(user_id: str):
        if user_id not in store.users:
            return jsonify({"error": "unknown user"}), 404
        if store.short_tokens and store.users[user_id].startswith("userB_"):
            return Response("nope", mimetype="text/plain")
        token = fake.sha256()
        store.tokens[token] = user_id
        return Response(token, mimetype="text/plain")

    @app.post("/api/workspaces/create")
    def create_workspace():
        if _bearer(store) is None:
            return jsonify({"error": "unauthorized"}), 401
        workspace_id = fake.uuid4()
        store.workspaces[workspace_id] = []
        return jsonify({"workspaceId": workspace_id}), 201

    @app.post("/api/workspaces/<workspace_id>/members/invite")
    def invite(workspace_id: str):
        if _bearer(store) is None:
            return jsonify({"error": "unauthorized"}), 401
        payload = request.get_json(silent=True) or {}
        if payload.get("query") is None:
            return jsonify({"error": "query: must not be null"}), 400
        store.workspaces.setdefault(workspace_id, []).append((payload["query"], payload.get("role")))
        return jsonify({"invited": payload["query"]}), 200

    return app


def create_project_service(store: SimpleNamespace) -> Flask:
    """Project service stub: projects, boards, participants, comments."""
    app = Flask("project_service_stub")

    @app.before_request
    def require_token():
        if _bearer(store) is None:
            return jsonify({"error": "unauthorized"}), 401
        return None

    @app.post("/api/projects")
    def create_project():
        project_id = fake.uuid4()
        store.projects[project_id] = request.get_json(silent=True) or {}
        return jsonify({"success": True, "data": {"projectId": project_id}}), 201

    @app.get("/api/projects/<project_id>/members")
    def project_members(project_id: str):
        if project_id not in store.projects:
            return jsonify({"error": "unknown project"}), 404
        return jsonify({"success": True, "data": []}), 200

    @app.post("/api/boards")
    def create_board():
        if store.fail_boards:
            return jsonify({"error": "board storage unavailable"}), 500
        payload = request.get_json(silent=True) or {}
        board_id = fake.uuid4()
        store.boards[board_id] = {"projectId": payload.get("projectId"), "stage": "todo"}
        return jsonify({"success": True, "data": {"boardId": board_id}}), 201

    @app.post("/api/participants")
    def add_participants():
        payload = request.get_json(silent=True) or {}
        store.participants.extend(payload.get("userIds", []))
        return jsonify({"success": True, "data": payload.get("userIds", [])}), 201

    @app.post("/api/comments")
    def create_comment():
        payload = request.get_json(silent=True) or {}
        comment_id = fake.uuid4()
        store.comments.append((_bearer(store), payload.get("boardId"), payload.get("content")))
        return jsonify({"success": True, "data": {"commentId": comment_id}}), 201

    @app.put("/api/boards/<board_id>/move")
    def move_board(board_id: str):
        board = store.boards.get(board_id)
        payload = request.get_json(silent=True) or {}
        if board is None or board["projectId"] != payload.get("projectId"):
            return jsonify({"error": "unknown board"}), 404
        board[payload["groupByFieldName"]] = payload["newFieldValue"]
        return jsonify({"success": True, "data": {"boardId": board_id}}), 200

    return app


def _serve(app: Flask):
    server = make_server("127.0.0.1", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, thread


@pytest.fixture
def backend() -> Generator[SimpleNamespace, None, None]:
    """
    Start both stub services and yield their shared in-memory store.

    The store also carries ``settings``, a ``TestingConfig`` subclass
    pointing at the two ephemeral ports with think-time disabled.
    """
    store = SimpleNamespace(
        users={},
        tokens={},
        workspaces={},
        projects={},
        boards={},
        participants=[],
        comments=[],
        short_tokens=False,
        fail_boards=False,
    )
    user_server, user_thread = _serve(create_user_service(store))
    project_server, project_thread = _serve(create_project_service(store))

    store.settings = type(
        "StubServicesConfig",
        (TestingConfig,),
        {
            "USER_API_BASE_URL": f"http://127.0.0.1:{user_server.server_port}",
            "PROJECT_API_BASE_URL": f"http://127.0.0.1:{project_server.server_port}",
            "REQUEST_TIMEOUT": 5,
        },
    )
    try:
        yield store
    finally:
        user_server.shutdown()
        project_server.shutdown()
        user_thread.join(timeout=5)
        project_thread.join(timeout=5)
