import pytest

from taskdeck.client import ApiError
from taskdeck.session import (
    DARK,
    LIGHT,
    THEME_KEY,
    TOKEN_KEY,
    USER_KEY,
    MappingStore,
    SessionController,
    TaskBoard,
    task_form_changes,
)


@pytest.fixture()
def store():
    return {}


@pytest.fixture()
def controller(store, fake_client_factory):
    return SessionController(MappingStore(store), fake_client_factory)


def test_fresh_session_is_logged_out(controller):
    ctx = controller.context
    assert not ctx.is_authenticated
    assert ctx.user is None
    assert ctx.theme == LIGHT
    assert controller.resolve_view("dashboard") == "login"


def test_login_persists_token_and_user(controller, store):
    ctx = controller.login("ada@example.com", "s3cret")
    assert ctx.is_authenticated
    assert ctx.user["name"] == "Ada"
    assert store[TOKEN_KEY] == "good-token"
    assert store[USER_KEY]["email"] == "ada@example.com"


def test_failed_login_leaves_session_untouched(controller, store):
    with pytest.raises(ApiError):
        controller.login("ada@example.com", "wrong")
    assert TOKEN_KEY not in store


def test_register_signs_in(controller):
    ctx = controller.register("Grace", "Grace@Example.com", "pw")
    assert ctx.is_authenticated
    assert ctx.user["email"] == "grace@example.com"


def test_restore_keeps_valid_token_and_refreshes_profile(store, controller):
    store[TOKEN_KEY] = "good-token"
    store[USER_KEY] = {"id": "u1", "name": "Stale", "email": "ada@example.com"}
    ctx = controller.restore()
    assert ctx.is_authenticated
    assert ctx.user["name"] == "Ada"


def test_restore_drops_rejected_token(store, controller):
    store[TOKEN_KEY] = "expired-token"
    store[USER_KEY] = {"id": "u1", "name": "Ada", "email": "ada@example.com"}
    ctx = controller.restore()
    assert not ctx.is_authenticated
    assert TOKEN_KEY not in store
    assert USER_KEY not in store


def test_restore_without_token_makes_no_call(controller, fake_client_factory):
    controller.restore()
    assert fake_client_factory.made == []


def test_logout_keeps_theme(controller, store):
    controller.login("ada@example.com", "s3cret")
    controller.toggle_theme()
    ctx = controller.logout()
    assert not ctx.is_authenticated
    assert store[THEME_KEY] == DARK


def test_toggle_theme_flips_and_persists(controller, store):
    assert controller.toggle_theme() == DARK
    assert controller.context.theme == DARK
    assert controller.toggle_theme() == LIGHT
    assert store[THEME_KEY] == LIGHT


def test_unknown_stored_theme_reads_as_light(controller, store):
    store[THEME_KEY] = "sepia"
    assert controller.context.theme == LIGHT


@pytest.mark.parametrize("requested,view", [
    ("calendar", "calendar"),
    ("dashboard", "dashboard"),
    ("tasks", "tasks"),
    (None, "tasks"),
    ("admin", "tasks"),
])
def test_resolve_view_when_signed_in(controller, requested, view):
    controller.login("ada@example.com", "s3cret")
    assert controller.resolve_view(requested) == view


def test_board_mutations_track_server_answers(fake_api):
    board = TaskBoard(fake_api)
    assert board.refresh() == ()
    assert board.loaded

    first = board.create("First")
    second = board.create("Second", priority="high")
    assert [t["id"] for t in board.tasks] == [second["id"], first["id"]]

    snapshot = board.tasks
    board.toggle(first["id"])
    assert board.find(first["id"])["completed"] is True
    # Earlier snapshots are left alone.
    assert snapshot[1]["completed"] is False

    board.update(second["id"], {"title": "Second, edited"})
    assert board.find(second["id"])["title"] == "Second, edited"

    board.delete(first["id"])
    assert [t["id"] for t in board.tasks] == [second["id"]]
    assert board.find(first["id"]) is None


def test_board_failure_keeps_list(fake_api):
    board = TaskBoard(fake_api)
    board.create("Keep me")
    before = board.tasks
    with pytest.raises(ApiError):
        board.toggle("missing")
    assert board.tasks == before


def test_form_changes_only_carry_edits():
    original = {"title": "Pay rent", "description": None, "dueDate": "2026-10-18", "priority": "high"}
    form = {"title": "Pay rent", "description": "", "dueDate": "2026-10-19", "priority": "high"}
    assert task_form_changes(original, form) == {"dueDate": "2026-10-19"}


def test_form_changes_clear_due_date_with_empty_string():
    original = {"title": "Pay rent", "dueDate": "2026-10-18", "priority": "medium"}
    assert task_form_changes(original, {"dueDate": None}) == {"dueDate": ""}
    assert task_form_changes({"dueDate": None}, {"dueDate": ""}) == {}
