from html import escape

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response

from dxcrm.activity.api import router as activity_router
from dxcrm.core.auth import AuthUser, require_auth
from dxcrm.core.config import get_settings
from dxcrm.core.errors import NotFound
from dxcrm.crm.api import routers as crm_routers
from dxcrm.identity.api import router as identity_router
from dxcrm.metrics import generate_metrics_payload, metrics_content_type

router = APIRouter()
for crm_router in crm_routers:
    router.include_router(crm_router)
router.include_router(identity_router)
router.include_router(activity_router)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def landing() -> HTMLResponse:
    settings = get_settings()
    title = escape(settings.app_name)
    refresh = ""
    if settings.frontend_url:
        target = escape(settings.frontend_url, quote=True)
        refresh = f'<meta http-equiv="refresh" content="0; url={target}">'
        body = f'<p>Redirecting to <a href="{target}">{target}</a></p>'
    else:
        body = "<p>The API is running.</p>"
    return HTMLResponse(
        f"<!doctype html><html><head><title>{title}</title>{refresh}</head>"
        f"<body><h1>{title}</h1>{body}</body></html>"
    )


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/me", tags=["auth"])
def me(user: AuthUser = Depends(require_auth)) -> dict[str, str | list[str]]:
    return {
        "sub": user.sub,
        "roles": user.roles,
    }


@router.get("/metrics", tags=["system"])
def metrics(request: Request) -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise NotFound("Not found")
    require_auth(request)
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
