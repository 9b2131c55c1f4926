# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Form, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from membership.auth.session import SessionData, SessionManager
from membership.auth.users import UserStore
from membership.config import Settings, validate_runtime_config
from membership.errors import (
    AuthenticationError,
    AuthorizationError,
    HashingError,
    MembershipError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from membership.infra.document_store import DocumentCollection
from membership.permissions import (
    cookie_settings,
    current_session_optional,
    load_session_from_request,
    require_admin,
    require_user,
)
from membership.services.auth_service import AuthService
from membership.views import (
    AdminPage,
    AdminUserRow,
    ErrorPage,
    IndexPage,
    LoginPage,
    MembersPage,
    PageContext,
    SignupPage,
)

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

MEMBER_IMAGES = ("img/fluffy.svg", "img/socks.svg", "img/whiskers.svg")

# Not gated on session resolution, so logout still succeeds when the session store fails.
SESSIONLESS_PATHS = frozenset({"/logout"})


def _render(request: Request, template_name: str, page: PageContext, *, status_code: int = 200):
    """TemplateResponse wrapper filling the session part of the page context."""
    page.with_session(current_session_optional(request))
    return templates.TemplateResponse(request, template_name, page.as_context(), status_code=status_code)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=302)


def build_auth_service(settings: Settings) -> AuthService:
    users = UserStore(DocumentCollection("users", settings.users_path))
    sessions = SessionManager(
        DocumentCollection("sessions", settings.sessions_path),
        settings.secret_key,
        max_age=settings.session_max_age,
    )
    return AuthService(users, sessions)


def create_app(settings: Optional[Settings] = None, auth: Optional[AuthService] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    validate_runtime_config(settings)
    auth = auth or build_auth_service(settings)

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        try:
            await run_in_threadpool(auth.sessions.purge_expired)
        except StoreError:
            logger.exception("Session cleanup failed. Check MEMBERSHIP_DATA_DIR permissions.")
        yield

    app = FastAPI(title="Membership", lifespan=_lifespan)
    app.state.settings = settings
    app.state.auth = auth

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    @app.middleware("http")
    async def _session_middleware(request: Request, call_next):
        if request.url.path in SESSIONLESS_PATHS:
            request.state.session = None
            return await call_next(request)
        try:
            request.state.session = await run_in_threadpool(
                load_session_from_request, request, auth.sessions, auth.users, settings.cookie_name
            )
        except StoreError as exc:
            logger.exception("Session lookup failed")
            request.state.session = None
            return _render(request, "error.html", ErrorPage(message=exc.message), status_code=500)
        response = await call_next(request)
        if getattr(request.state, "clear_session_cookie", False):
            response.delete_cookie(settings.cookie_name)
        return response

    # ------------------ Error pages ------------------

    @app.exception_handler(AuthorizationError)
    async def _forbidden(request: Request, exc: AuthorizationError):
        return _render(request, "403.html", ErrorPage(title="Forbidden", message=exc.message), status_code=403)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return _render(request, "404.html", ErrorPage(title="Not found", message=exc.message), status_code=404)

    @app.exception_handler(StoreError)
    @app.exception_handler(HashingError)
    async def _infrastructure_failure(request: Request, exc: MembershipError):
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        return _render(request, "error.html", ErrorPage(message=exc.message), status_code=500)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _render(request, "404.html", ErrorPage(title="Not found", message="Page not found"), status_code=404)
        if 300 <= exc.status_code < 400 and exc.headers and "Location" in exc.headers:
            return RedirectResponse(url=exc.headers["Location"], status_code=exc.status_code)
        return await http_exception_handler(request, exc)

    # ------------------ Routes ------------------

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request):
        return _render(request, "index.html", IndexPage())

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/signup", response_class=HTMLResponse)
    def signup_get(request: Request):
        if current_session_optional(request):
            return _redirect("/members")
        return _render(request, "signup.html", SignupPage())

    @app.post("/signup")
    def signup_post(
        request: Request,
        name: str = Form(""),
        email: str = Form(""),
        password: str = Form(""),
    ):
        try:
            _, token = auth.signup({"name": name, "email": email, "password": password})
        except ValidationError as exc:
            page = SignupPage(
                error=exc.message,
                form_name=exc.fields.get("name", ""),
                form_email=exc.fields.get("email", ""),
            )
            return _render(request, "signup.html", page, status_code=int(exc.status))
        resp = _redirect("/members")
        resp.set_cookie(settings.cookie_name, token, **cookie_settings(settings))
        return resp

    @app.get("/login", response_class=HTMLResponse)
    def login_get(request: Request):
        if current_session_optional(request):
            return _redirect("/members")
        return _render(request, "login.html", LoginPage())

    @app.post("/login")
    def login_post(
        request: Request,
        email: str = Form(""),
        password: str = Form(""),
    ):
        try:
            _, token = auth.login({"email": email, "password": password})
        except (ValidationError, AuthenticationError) as exc:
            page = LoginPage(error=exc.message, form_email=email.strip())
            return _render(request, "login.html", page, status_code=int(exc.status))
        resp = _redirect("/members")
        resp.set_cookie(settings.cookie_name, token, **cookie_settings(settings))
        return resp

    @app.get("/logout")
    def logout(request: Request):
        auth.logout(request.cookies.get(settings.cookie_name, ""))
        request.state.session = None
        resp = _redirect("/")
        resp.delete_cookie(settings.cookie_name)
        return resp

    @app.get("/members", response_class=HTMLResponse)
    def members(request: Request, session: SessionData = Depends(require_user)):
        return _render(request, "members.html", MembersPage(image=random.choice(MEMBER_IMAGES)))

    @app.get("/admin", response_class=HTMLResponse)
    def admin(request: Request, session: SessionData = Depends(require_admin)):
        rows = [AdminUserRow.from_user(u, current_user_id=session.user_id) for u in auth.users.list_all()]
        return _render(request, "admin.html", AdminPage(users=rows))

    @app.get("/admin/promote/{user_id}")
    def promote(user_id: str, session: SessionData = Depends(require_admin)):
        auth.promote(user_id)
        return _redirect("/admin")

    @app.get("/admin/demote/{user_id}")
    def demote(user_id: str, session: SessionData = Depends(require_admin)):
        auth.demote(user_id)
        return _redirect("/admin")

    return app


app = create_app()
