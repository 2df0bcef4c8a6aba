from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import quote, urljoin

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .auth import AdminSession
from .backend import Backend, get_backend
from .errors import AuthError, StoreError
from .review import REVIEW_STATUSES, TeamReview
from .roster import LogoFile, RosterDraft, TeamDraft
from .validation import REQUIRED_PLAYER_COUNT
from .workflow import RegistrationWorkflow, SubmissionState

BASE_DIR = Path(__file__).resolve().parent

router = APIRouter()
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

logger = logging.getLogger(__name__)

CLUB_NAME = os.getenv("CLUB_NAME", "Ithalar Sports Club")
SESSION_COOKIE_NAME = os.getenv("ADMIN_SESSION_COOKIE", "registration_admin_session")
COOKIE_SECURE = os.getenv("ADMIN_COOKIE_SECURE", "true").lower() != "false"
REDIRECT_AFTER_SUCCESS_SECONDS = 2
MAX_TEXT_LENGTH = 100
DEFAULT_ADMIN_PATH = "/admin/dashboard"

REVIEW_MESSAGES = {
    "approved": "Team approved.",
    "rejected": "Team rejected.",
}


def _current_session(request: Request, backend: Backend) -> AdminSession | None:
    return backend.auth.get_session(request.cookies.get(SESSION_COOKIE_NAME))


def _admin_redirect(request: Request, next_path: str | None = None) -> RedirectResponse:
    if next_path is None:
        next_path = request.url.path
        if request.url.query:
            next_path += f"?{request.url.query}"
    login_url = request.url_for("admin_login")
    redirect_target = f"{login_url}?next={quote(next_path, safe='')}"
    return RedirectResponse(redirect_target, status_code=303)


def _sanitize_next(next_param: str | None) -> str:
    if next_param and next_param.startswith("/") and not next_param.startswith("//"):
        return next_param
    return DEFAULT_ADMIN_PATH


def _absolute_next(request: Request, next_param: str) -> str:
    return urljoin(str(request.base_url), next_param.lstrip("/"))


def _render(
    request: Request,
    template_name: str,
    context: dict[str, object],
    *,
    status_code: int | None = None,
) -> HTMLResponse:
    payload = dict(context)
    payload.setdefault("club_name", CLUB_NAME)
    payload.setdefault("admin_session", None)
    response = templates.TemplateResponse(request, template_name, payload)
    if status_code is not None:
        response.status_code = status_code
    return response


def _register_context(
    draft: TeamDraft,
    *,
    errors: dict[str, str] | None = None,
    notice=None,
    redirect_after: int | None = None,
) -> dict[str, object]:
    return {
        "draft": draft,
        "roster": draft.roster,
        "errors": errors or {},
        "notice": notice,
        "required_players": REQUIRED_PLAYER_COUNT,
        "redirect_after": redirect_after,
    }


async def _read_logo(upload: UploadFile | None) -> LogoFile | None:
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    if not data:
        return None
    return LogoFile(filename=upload.filename, content_type=(upload.content_type or "").lower(), data=data)


def _roster_action_index(action: str) -> int | None:
    _, _, raw = action.partition("-")
    return int(raw) if raw.isdigit() else None


@router.get("/", response_class=HTMLResponse, name="index")
async def index(request: Request):
    return _render(request, "index.html", {})


@router.get("/register", response_class=HTMLResponse, name="register")
async def register_page(request: Request):
    return _render(request, "register.html", _register_context(TeamDraft()))


@router.post("/register", response_class=HTMLResponse, name="submit_registration")
async def submit_registration(
    request: Request,
    backend: Backend = Depends(get_backend),
    team_name: str = Form(default="", max_length=MAX_TEXT_LENGTH),
    manager_name: str = Form(default="", max_length=MAX_TEXT_LENGTH),
    manager_phone: str = Form(default="", max_length=MAX_TEXT_LENGTH),
    player_name: list[str] = Form(default=[]),
    player_jersey: list[str] = Form(default=[]),
    player_position: list[str] = Form(default=[]),
    action: str = Form(default="submit", max_length=MAX_TEXT_LENGTH),
    logo: UploadFile | None = File(default=None),
):
    draft = TeamDraft(
        team_name=team_name,
        manager_name=manager_name,
        manager_phone=manager_phone,
        roster=RosterDraft.from_form(player_name, player_jersey, player_position),
    )

    if action == "add":
        draft.roster.add_entry()
        return _render(request, "register.html", _register_context(draft))
    if action.startswith("remove-"):
        index = _roster_action_index(action)
        if index is not None:
            draft.roster.remove_entry(index)
        return _render(request, "register.html", _register_context(draft))
    if action != "submit":
        raise HTTPException(status_code=400, detail="Unknown form action")

    draft.logo = await _read_logo(logo)
    workflow = RegistrationWorkflow(backend)
    outcome = workflow.submit(draft)

    if outcome.state is SubmissionState.SUCCEEDED:
        context = _register_context(
            draft, notice=outcome.notice, redirect_after=REDIRECT_AFTER_SUCCESS_SECONDS
        )
        return _render(request, "register.html", context)
    if outcome.state is SubmissionState.IDLE_WITH_ERRORS:
        context = _register_context(draft, errors=outcome.errors, notice=outcome.notice)
        return _render(request, "register.html", context, status_code=400)

    context = _register_context(draft, notice=outcome.notice)
    return _render(request, "register.html", context, status_code=502)


@router.get("/admin/login", response_class=HTMLResponse, name="admin_login")
async def admin_login(request: Request, next: str | None = None, backend: Backend = Depends(get_backend)):
    next_raw = _sanitize_next(next)
    if _current_session(request, backend):
        return RedirectResponse(_absolute_next(request, next_raw), status_code=303)
    return _render(request, "admin_login.html", {"next": next_raw, "error": None, "email": ""})


@router.post("/admin/login", response_class=HTMLResponse, name="admin_login_submit")
async def admin_login_submit(
    request: Request,
    backend: Backend = Depends(get_backend),
    email: str = Form(..., max_length=MAX_TEXT_LENGTH),
    password: str = Form(..., max_length=MAX_TEXT_LENGTH),
    next: str = Form(default=DEFAULT_ADMIN_PATH, max_length=MAX_TEXT_LENGTH),
):
    next_raw = _sanitize_next(next)
    try:
        session = backend.auth.sign_in_with_password(email, password)
    except AuthError as exc:
        context = {"next": next_raw, "error": exc.message, "email": email}
        return _render(request, "admin_login.html", context, status_code=401)

    logger.info("Admin %s signed in", session.email)
    response = RedirectResponse(_absolute_next(request, next_raw), status_code=303)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session.token,
        max_age=backend.auth.max_age,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    return response


@router.post("/admin/logout", response_class=HTMLResponse, name="admin_logout")
async def admin_logout(request: Request, backend: Backend = Depends(get_backend)):
    backend.auth.sign_out(request.cookies.get(SESSION_COOKIE_NAME))
    response = RedirectResponse(str(request.url_for("admin_login")), status_code=303)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return response


@router.get("/admin/dashboard", response_class=HTMLResponse, name="admin_dashboard")
async def admin_dashboard(request: Request, backend: Backend = Depends(get_backend)):
    session = _current_session(request, backend)
    if not session:
        return _admin_redirect(request)

    review = TeamReview(backend)
    review.load_teams()
    context = {
        "admin_session": session,
        "teams": review.teams,
        "counts": review.status_counts(),
        "review_message": REVIEW_MESSAGES.get(request.query_params.get("review", "")),
        "review_error": None,
    }
    return _render(request, "dashboard.html", context)


@router.post("/admin/team/{team_id}/status", response_class=HTMLResponse, name="admin_set_status")
async def admin_set_status(
    request: Request,
    team_id: str,
    backend: Backend = Depends(get_backend),
    status: str = Form(..., max_length=MAX_TEXT_LENGTH),
    next: str | None = Form(default=None, max_length=MAX_TEXT_LENGTH),
):
    session = _current_session(request, backend)
    if not session:
        return _admin_redirect(request, DEFAULT_ADMIN_PATH)
    if status not in REVIEW_STATUSES:
        raise HTTPException(status_code=400, detail="Unknown team status")

    review = TeamReview(backend)
    try:
        review.set_status(team_id, status)
    except StoreError as exc:
        review.load_teams()
        context = {
            "admin_session": session,
            "teams": review.teams,
            "counts": review.status_counts(),
            "review_message": None,
            "review_error": exc.message,
        }
        return _render(request, "dashboard.html", context, status_code=502)

    target = _sanitize_next(next)
    separator = "&" if "?" in target else "?"
    return RedirectResponse(_absolute_next(request, f"{target}{separator}review={status}"), status_code=303)


@router.get("/admin/team/{team_id}", response_class=HTMLResponse, name="admin_team_detail")
async def admin_team_detail(request: Request, team_id: str, backend: Backend = Depends(get_backend)):
    session = _current_session(request, backend)
    if not session:
        return _admin_redirect(request)

    detail = TeamReview(backend).load_team_detail(team_id)
    context = {
        "admin_session": session,
        "detail": detail,
        "review_message": REVIEW_MESSAGES.get(request.query_params.get("review", "")),
    }
    return _render(request, "team_detail.html", context, status_code=None if detail else 404)
