"""
The collaboration workflow, one function per step.

Steps run in the order of :data:`STEPS`:

==  ==================  =====================================  ==========
#   Step                Needs (on missing)                     Check
==  ==================  =====================================  ==========
1   CreateUserA         --                                     200/201
2   ObtainTokenA        user A id (halt)                       200 + JWT
3   CreateWorkspace     token A (halt)                         200/201
4   CreateProject       workspace id (halt)                    201
5   CreateBoard         project id (halt)                      201
6   CreateUserB         --                                     200/201
7   ObtainTokenB        user B id (skip)                       200 + JWT
8   InviteUserB         workspace id (halt)                    200/201
9   ListProjectMembers  project id (halt)                      200
10  AddParticipantB     board id (halt)                        200/201
11  CreateComment       token B and board id (skip)            201
12  MoveBoard           board id and project id (halt)         200
==  ==================  =====================================  ==========

The identity service returns created ids at the top level of the body;
the project service nests them under ``data``.  Each step spells out its
own path so the two conventions are never mixed up.
"""

from __future__ import annotations

from .helpers import JSON_HEADERS, auth_header
from .workflow import (
    IterationState,
    ScenarioClient,
    Step,
    StepOutcome,
    StepResult,
    capture_id,
    result_for,
    skip,
)

OK_OR_CREATED = (200, 201)
CREATED = (201,)
OK = (200,)

# Test tokens are JWTs; anything this short is an error message, not a token.
MIN_TOKEN_LENGTH = 10


def _check_token_body(text: str) -> str | None:
    if len(text) > MIN_TOKEN_LENGTH:
        return None
    return "Response body was too short. Expected JWT token"


def _create_user(client: ScenarioClient, state: IterationState, step: Step, label: str) -> StepResult:
    identity = state.user_a if label == "A" else state.user_b
    reply = client.call(
        step,
        state,
        "POST",
        client.user_url("/api/users"),
        expected=OK_OR_CREATED,
        json={
            "email": identity.email,
            "googleId": identity.provider_id,
            "provider": client.settings.IDENTITY_PROVIDER,
        },
        headers=dict(JSON_HEADERS),
    )
    identity.user_id = capture_id(reply, step, state, "userId")
    return result_for(step, reply, user_id=identity.user_id)


def _obtain_token(client: ScenarioClient, state: IterationState, step: Step, label: str) -> StepResult:
    identity = state.user_a if label == "A" else state.user_b
    reply = client.call(
        step,
        state,
        "GET",
        client.user_url(f"/api/users/test/{identity.user_id}"),
        expected=OK,
        body_check=_check_token_body,
    )
    if reply.passed:
        identity.token = reply.text
    return result_for(step, reply)


def create_user_a(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    return _create_user(client, state, step, "A")


def obtain_token_a(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    """Fetch A's test token, unless the token endpoint is disabled for A."""
    if not client.settings.FETCH_TOKEN_A:
        return skip(client, step, state, "token endpoint disabled for user A")
    return _obtain_token(client, state, step, "A")


def create_workspace(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    reply = client.call(
        step,
        state,
        "POST",
        client.user_url("/api/workspaces/create"),
        expected=OK_OR_CREATED,
        json={
            "workspaceName": f"WS {state.vu_id} - {state.suffix}",
            "workspaceDescription": "Load Test WS",
            "isPublic": True,
        },
        headers=auth_header(state.user_a.token),
    )
    state.workspace_id = capture_id(reply, step, state, "workspaceId")
    return result_for(step, reply, workspace_id=state.workspace_id)


def create_project(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    reply = client.call(
        step,
        state,
        "POST",
        client.project_url("/api/projects"),
        expected=CREATED,
        json={
            "workspaceId": state.workspace_id,
            "name": f"Project {state.vu_id} - {state.suffix}",
            "description": "Test Project",
        },
        headers=auth_header(state.user_a.token),
    )
    state.project_id = capture_id(reply, step, state, "data", "projectId")
    return result_for(step, reply, project_id=state.project_id)


def create_board(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    reply = client.call(
        step,
        state,
        "POST",
        client.project_url("/api/boards"),
        expected=CREATED,
        json={
            "projectId": state.project_id,
            "title": f"To Do Board - VU {state.vu_id}",
            "content": "Initial task in the project.",
        },
        headers=auth_header(state.user_a.token),
    )
    state.board_id = capture_id(reply, step, state, "data", "boardId")
    return result_for(step, reply, board_id=state.board_id)


def create_user_b(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    return _create_user(client, state, step, "B")


def obtain_token_b(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    return _obtain_token(client, state, step, "B")


def invite_user_b(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    """Invite B by email; the service resolves the ``query`` field to a user."""
    reply = client.call(
        step,
        state,
        "POST",
        client.user_url(f"/api/workspaces/{state.workspace_id}/members/invite"),
        expected=OK_OR_CREATED,
        json={"query": state.user_b.email, "role": client.settings.MEMBER_ROLE},
        headers=auth_header(state.user_a.token),
    )
    return result_for(step, reply)


def list_project_members(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    reply = client.call(
        step,
        state,
        "GET",
        client.project_url(f"/api/projects/{state.project_id}/members"),
        expected=OK,
        headers=auth_header(state.user_a.token),
    )
    return result_for(step, reply)


def add_participant_b(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    user_ids = [state.user_b.user_id] if state.user_b.user_id else []
    reply = client.call(
        step,
        state,
        "POST",
        client.project_url("/api/participants"),
        expected=OK_OR_CREATED,
        json={"boardId": state.board_id, "userIds": user_ids},
        headers=auth_header(state.user_a.token),
    )
    return result_for(step, reply)


def create_comment(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    reply = client.call(
        step,
        state,
        "POST",
        client.project_url("/api/comments"),
        expected=CREATED,
        json={"boardId": state.board_id, "content": f"Hello, from User B {state.vu_id}"},
        headers=auth_header(state.user_b.token),
    )
    state.comment_id = capture_id(reply, step, state, "data", "commentId")
    return result_for(step, reply, comment_id=state.comment_id)


def move_board(client: ScenarioClient, state: IterationState, step: Step) -> StepResult:
    reply = client.call(
        step,
        state,
        "PUT",
        client.project_url(f"/api/boards/{state.board_id}/move"),
        expected=OK,
        json={
            "projectId": state.project_id,
            "groupByFieldName": client.settings.BOARD_GROUP_BY_FIELD,
            "newFieldValue": client.settings.BOARD_TARGET_VALUE,
        },
        headers=auth_header(state.user_a.token),
    )
    return result_for(step, reply)


STEPS: tuple[Step, ...] = (
    Step(1, "CreateUserA", "User A Created", "createUserA", create_user_a),
    Step(
        2, "ObtainTokenA", "Token A Received", "getAccessTokenA", obtain_token_a,
        requires=("user_a.user_id",),
    ),
    Step(
        3, "CreateWorkspace", "Workspace Created", "createWorkspace", create_workspace,
        requires=("user_a.token",),
    ),
    Step(
        4, "CreateProject", "Project Created", "createProject", create_project,
        requires=("workspace_id",),
    ),
    Step(
        5, "CreateBoard", "Board Created", "createBoard", create_board,
        requires=("project_id",),
    ),
    Step(6, "CreateUserB", "User B Created", "createUserB", create_user_b),
    Step(
        7, "ObtainTokenB", "Token B Received", "getAccessTokenB", obtain_token_b,
        requires=("user_b.user_id",),
        on_missing=StepOutcome.SKIPPED,
    ),
    Step(
        8, "InviteUserB", "User B Invited", "inviteUserB", invite_user_b,
        requires=("workspace_id",),
    ),
    Step(
        9, "ListProjectMembers", "Project Members Retrieved", "getProjectMembers",
        list_project_members,
        requires=("project_id",),
    ),
    Step(
        10, "AddParticipantB", "Participant B Added", "addParticipantB", add_participant_b,
        requires=("board_id",),
    ),
    Step(
        11, "CreateComment", "Comment Created", "createComment", create_comment,
        requires=("user_b.token", "board_id"),
        on_missing=StepOutcome.SKIPPED,
    ),
    Step(
        12, "MoveBoard", "Board Moved", "moveBoard", move_board,
        requires=("board_id", "project_id"),
    ),
)
