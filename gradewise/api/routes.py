"""
FastAPI routes for the GradeWise Schoology authentication service.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from gradewise.clients.schoology import extract_identity
from gradewise.core.errors import (
    AuthorizationError,
    ConfigurationError,
    FlowStateError,
    MalformedResponseError,
    ProviderError,
    ProviderTimeoutError,
    SchoologyAuthError,
    StaleTokenWriteError,
    TokenNotFoundError,
    VerifierMissingError,
)
from gradewise.dependencies import (
    get_admin_signer,
    get_app_settings,
    get_consumer_signer,
    get_impersonation_gate,
    get_schoology_client,
    get_session_binder,
    get_token_store,
)
from gradewise.models.oauth import TokenPhase
from gradewise.schemas import (
    AuthErrorResponse,
    AuthorizationStartResponse,
    AuthStatusResponse,
    OAuthCallbackPayload,
)
from gradewise.services import ActingCredential, SchoologyAuthFlow

router = APIRouter()
live_login_router = APIRouter()
offline_login_router = APIRouter()
local_login_router = APIRouter()
logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[SchoologyAuthError], HTTPStatus] = {
    ConfigurationError: HTTPStatus.INTERNAL_SERVER_ERROR,
    ProviderTimeoutError: HTTPStatus.GATEWAY_TIMEOUT,
    ProviderError: HTTPStatus.BAD_GATEWAY,
    MalformedResponseError: HTTPStatus.BAD_GATEWAY,
    VerifierMissingError: HTTPStatus.BAD_REQUEST,
    TokenNotFoundError: HTTPStatus.BAD_REQUEST,
    AuthorizationError: HTTPStatus.FORBIDDEN,
    FlowStateError: HTTPStatus.CONFLICT,
    StaleTokenWriteError: HTTPStatus.CONFLICT,
}

_HUMAN_REASONS = {
    "configuration_error": "Schoology sign-in is not configured on this server.",
    "provider_error": "Schoology rejected the sign-in request.",
    "provider_timeout": "Schoology did not respond in time.",
    "malformed_response": "Schoology sent an unexpected response.",
    "verifier_missing": "Schoology did not confirm the authorization.",
    "token_not_found": "This sign-in link has expired. Please start again.",
    "not_authorized": "You are not allowed to do that.",
}


def status_for_error(error: SchoologyAuthError) -> HTTPStatus:
    for cls in type(error).__mro__:
        if cls in _ERROR_STATUS:
            return _ERROR_STATUS[cls]
    return HTTPStatus.INTERNAL_SERVER_ERROR


def _error_body(error: SchoologyAuthError) -> dict:
    return AuthErrorResponse(
        error=error.reason,
        detail=_HUMAN_REASONS.get(error.reason, "Authentication failed."),
    ).model_dump()


async def schoology_auth_error_handler(request: Request, exc: SchoologyAuthError) -> Response:
    """Translate uncaught domain errors into JSON without leaking internals.

    Login routes that a browser asked to redirect land on the login error page.
    """
    login_settings = getattr(request.state, "login_error_settings", None)
    if login_settings is not None:
        return _login_error_redirect(login_settings, exc)
    return JSONResponse(status_code=status_for_error(exc), content=_error_body(exc))


def _wants_html(request: Request, redirect: bool = False) -> bool:
    accept_header = request.headers.get("accept", "")
    return redirect or "text/html" in accept_header.lower()


def _frontend_url(settings: Any, path: str) -> str:
    base = str(settings.frontend_base_url or "").rstrip("/")
    return f"{base}{path}"


def _require_user_id(request: Request, binder: Any) -> str:
    session = binder.read(request.cookies)
    if session is None or not session.user_id or not _is_schoology_id(session.user_id):
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Not authenticated")
    return session.user_id


def _is_schoology_id(value: str) -> bool:
    """Schoology user ids are numeric; anything else never reaches a URL path."""
    return value.isascii() and value.isdigit()


def _browser_login_context(
    request: Request,
    settings: Annotated[Any, Depends(get_app_settings)],
    redirect: bool = Query(default=False),
) -> None:
    """Mark the request so errors raised while resolving dependencies redirect too."""
    if _wants_html(request, redirect):
        request.state.login_error_settings = settings


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@live_login_router.get(
    "/auth/schoology",
    status_code=HTTPStatus.OK,
    dependencies=[Depends(_browser_login_context)],
)
async def start_schoology_login(
    request: Request,
    settings: Annotated[Any, Depends(get_app_settings)],
    client: Annotated[Any, Depends(get_schoology_client)],
    signer: Annotated[Any, Depends(get_consumer_signer)],
    token_store: Annotated[Any, Depends(get_token_store)],
    binder: Annotated[Any, Depends(get_session_binder)],
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Schoology consent screen.",
    ),
) -> Response:
    """Kick off the OAuth 1.0a flow and hand back the Schoology authorize URL."""
    callback_url = settings.schoology.callback_url
    if not callback_url:
        raise ConfigurationError("SCHOOLOGY_CALLBACK_URL is not configured.")

    flow = SchoologyAuthFlow(
        signer=signer,
        client=client,
        token_store=token_store,
        session_binder=binder,
        verifier_policy=settings.oauth.verifier_policy,
    )
    try:
        authorization_url = await flow.start(str(callback_url))
    except SchoologyAuthError as exc:
        if _wants_html(request, redirect):
            return _login_error_redirect(settings, exc)
        raise

    if _wants_html(request, redirect):
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)
    return JSONResponse(
        content=AuthorizationStartResponse(authorization_url=authorization_url).model_dump()
    )


@offline_login_router.get("/auth/schoology")
async def start_offline_login(request: Request) -> Response:
    """Offline deployments send every login to the demo session."""
    return RedirectResponse(
        url=str(request.url_for("start_demo_session")),
        status_code=HTTPStatus.TEMPORARY_REDIRECT,
    )


def _login_error_redirect(settings: Any, error: SchoologyAuthError) -> RedirectResponse:
    query = urlencode({"error": error.reason, "message": _HUMAN_REASONS.get(error.reason, "")})
    return RedirectResponse(
        url=_frontend_url(settings, f"/login?{query}"),
        status_code=HTTPStatus.SEE_OTHER,
    )


async def _complete_callback(
    request: Request,
    *,
    settings: Any,
    client: Any,
    signer: Any,
    token_store: Any,
    binder: Any,
    gate: Any,
    oauth_token: str | None,
    oauth_verifier: str | None,
    redirect: bool,
) -> Response:
    flow = SchoologyAuthFlow.resume(
        signer=signer,
        client=client,
        token_store=token_store,
        session_binder=binder,
        gate=gate,
        verifier_policy=settings.oauth.verifier_policy,
    )
    wants_html = _wants_html(request, redirect)
    try:
        result = await flow.complete(oauth_token, oauth_verifier)
    except SchoologyAuthError as exc:
        if wants_html:
            return _login_error_redirect(settings, exc)
        return JSONResponse(status_code=status_for_error(exc), content=_error_body(exc))

    if wants_html:
        response: Response = RedirectResponse(
            url=_frontend_url(settings, "/dashboard"), status_code=HTTPStatus.SEE_OTHER
        )
    else:
        response = JSONResponse(
            content={"status": "connected", "id": result.user_id, "name": result.display_name}
        )
    return binder.apply(response, result.session_cookie)


@router.get(
    "/auth/callback/schoology",
    status_code=HTTPStatus.OK,
    dependencies=[Depends(_browser_login_context)],
)
async def handle_schoology_callback(
    request: Request,
    settings: Annotated[Any, Depends(get_app_settings)],
    client: Annotated[Any, Depends(get_schoology_client)],
    signer: Annotated[Any, Depends(get_consumer_signer)],
    token_store: Annotated[Any, Depends(get_token_store)],
    binder: Annotated[Any, Depends(get_session_binder)],
    gate: Annotated[Any, Depends(get_impersonation_gate)],
    oauth_token: str | None = Query(default=None, description="Request token being authorized."),
    oauth_verifier: str | None = Query(default=None, description="Verifier issued by Schoology."),
    redirect: bool = Query(
        default=False,
        description="When true, redirect browser clients instead of returning JSON.",
    ),
) -> Response:
    """Complete the OAuth exchange, store the access token and bind a session."""
    return await _complete_callback(
        request,
        settings=settings,
        client=client,
        signer=signer,
        token_store=token_store,
        binder=binder,
        gate=gate,
        oauth_token=oauth_token,
        oauth_verifier=oauth_verifier,
        redirect=redirect,
    )


@router.post(
    "/auth/callback/schoology",
    status_code=HTTPStatus.OK,
    dependencies=[Depends(_browser_login_context)],
)
async def handle_schoology_callback_post(
    request: Request,
    settings: Annotated[Any, Depends(get_app_settings)],
    client: Annotated[Any, Depends(get_schoology_client)],
    signer: Annotated[Any, Depends(get_consumer_signer)],
    token_store: Annotated[Any, Depends(get_token_store)],
    binder: Annotated[Any, Depends(get_session_binder)],
    gate: Annotated[Any, Depends(get_impersonation_gate)],
) -> Response:
    """Form-posted variant of the callback; form fields override query values."""
    params = dict(request.query_params)
    form = await request.form()
    params.update({key: str(value) for key, value in form.items()})
    payload = OAuthCallbackPayload.model_validate(params)
    return await _complete_callback(
        request,
        settings=settings,
        client=client,
        signer=signer,
        token_store=token_store,
        binder=binder,
        gate=gate,
        oauth_token=payload.oauth_token,
        oauth_verifier=payload.oauth_verifier,
        redirect=params.get("redirect", "").lower() == "true",
    )


@router.post("/auth/logout")
async def logout(
    request: Request,
    settings: Annotated[Any, Depends(get_app_settings)],
    binder: Annotated[Any, Depends(get_session_binder)],
) -> Response:
    """Clear the real and the demo session cookie. Stored tokens are kept."""
    if _wants_html(request):
        response: Response = RedirectResponse(
            url=_frontend_url(settings, "/") or "/",
            status_code=HTTPStatus.TEMPORARY_REDIRECT,
        )
    else:
        response = JSONResponse(content={"status": "signed_out"})
    return binder.apply(response, *binder.unbind())


@router.get("/auth/status", response_model=AuthStatusResponse, response_model_by_alias=True)
async def auth_status(
    request: Request,
    binder: Annotated[Any, Depends(get_session_binder)],
    token_store: Annotated[Any, Depends(get_token_store)],
) -> AuthStatusResponse:
    session = binder.read(request.cookies)
    if session is None:
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Not authenticated")
    if session.demo:
        return AuthStatusResponse(id=None, name="Demo User", has_token=False, source="demo")

    record = token_store.get(session.user_id)
    return AuthStatusResponse(
        id=session.user_id,
        name=(record.display_name if record else None) or "Unknown User",
        has_token=record is not None and record.phase is TokenPhase.AUTHORIZED,
        source="store",
    )


@router.get("/demo/start", name="start_demo_session")
async def start_demo_session(
    settings: Annotated[Any, Depends(get_app_settings)],
    binder: Annotated[Any, Depends(get_session_binder)],
) -> Response:
    """Enter the sample-data dashboard without contacting Schoology."""
    response = RedirectResponse(
        url=_frontend_url(settings, "/dashboard"), status_code=HTTPStatus.TEMPORARY_REDIRECT
    )
    return binder.apply(response, binder.bind_demo())


@local_login_router.get("/mock/login")
async def mock_login(
    settings: Annotated[Any, Depends(get_app_settings)],
    client: Annotated[Any, Depends(get_schoology_client)],
    admin_signer: Annotated[Any, Depends(get_admin_signer)],
    gate: Annotated[Any, Depends(get_impersonation_gate)],
    binder: Annotated[Any, Depends(get_session_binder)],
    user_id: str = Query(..., min_length=1, description="Schoology user to sign in as."),
) -> Response:
    """Sign in as an existing Schoology user that has no OAuth tokens of its own.

    Mounted only for offline or local deployments.
    """
    if not _is_schoology_id(user_id):
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="Invalid Schoology user id")

    acting = ActingCredential.administrator(admin_signer)
    try:
        payload = await client.get_json(
            client.resource_url(f"users/{user_id}?format=json"), gate.header_factory(acting)
        )
    except ProviderError as exc:
        if exc.status_code == HTTPStatus.NOT_FOUND:
            raise HTTPException(
                status_code=HTTPStatus.NOT_FOUND, detail="User not found in Schoology"
            ) from exc
        raise

    resolved_id, display_name = extract_identity(payload)
    logger.info("Mock login for Schoology user %s (%s)", resolved_id, display_name)
    response = RedirectResponse(
        url=_frontend_url(settings, "/dashboard"), status_code=HTTPStatus.TEMPORARY_REDIRECT
    )
    return binder.apply(response, binder.bind(resolved_id))


@router.get("/schoology/me")
async def schoology_me(
    request: Request,
    client: Annotated[Any, Depends(get_schoology_client)],
    signer: Annotated[Any, Depends(get_consumer_signer)],
    token_store: Annotated[Any, Depends(get_token_store)],
    binder: Annotated[Any, Depends(get_session_binder)],
    gate: Annotated[Any, Depends(get_impersonation_gate)],
) -> dict:
    """Fetch the signed-in user's profile with their own access token."""
    user_id = _require_user_id(request, binder)
    record = token_store.get(user_id)
    if record is None or record.phase is not TokenPhase.AUTHORIZED:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="Missing access token")

    acting = ActingCredential.for_user(signer, record.credential)
    payload = await client.get_json(
        client.resource_url("users/me?format=json"), gate.header_factory(acting)
    )
    live_id, name = extract_identity(payload)
    return {"id": live_id, "name": name, "source": "live"}


@router.get("/schoology/sections")
async def schoology_sections(
    request: Request,
    client: Annotated[Any, Depends(get_schoology_client)],
    signer: Annotated[Any, Depends(get_consumer_signer)],
    admin_signer: Annotated[Any, Depends(get_admin_signer)],
    token_store: Annotated[Any, Depends(get_token_store)],
    binder: Annotated[Any, Depends(get_session_binder)],
    gate: Annotated[Any, Depends(get_impersonation_gate)],
) -> dict:
    """List the session user's sections.

    Users with their own access token sign as themselves; users without one
    are served by the admin credential running as them.
    """
    user_id = _require_user_id(request, binder)
    record = token_store.get(user_id)
    if record is not None and record.phase is TokenPhase.AUTHORIZED:
        acting = ActingCredential.for_user(signer, record.credential)
        sign = gate.header_factory(acting)
        path = "users/me/sections"
        source = "live"
    else:
        acting = ActingCredential.administrator(admin_signer)
        sign = gate.header_factory(acting, target_user_id=user_id)
        path = f"users/{user_id}/sections"
        source = "admin:live"

    payload = await client.get_json(client.resource_url(path), sign)
    return {
        "sections": payload.get("section") or [],
        "targetUserId": user_id,
        "source": source,
    }


@router.post("/admin/tokens/{user_id}/invalidate")
async def invalidate_user_token(
    user_id: str,
    request: Request,
    settings: Annotated[Any, Depends(get_app_settings)],
    binder: Annotated[Any, Depends(get_session_binder)],
    token_store: Annotated[Any, Depends(get_token_store)],
) -> dict:
    """Administrative cleanup of a user's stored access token."""
    caller = _require_user_id(request, binder)
    if caller not in settings.admin_user_ids:
        logger.warning("User %s attempted to invalidate tokens for %s", caller, user_id)
        raise HTTPException(status_code=HTTPStatus.FORBIDDEN, detail="Forbidden")
    return {"user_id": user_id, "invalidated": token_store.invalidate(user_id)}
