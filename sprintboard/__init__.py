"""Application factory and top-level wiring for the sprint board API.

Configuration, database setup, middlewares, routers and error handling are
brought together here. Importing the package builds ``app`` and makes sure the
schema exists, so tests and ``uvicorn sprintboard.main:app`` share one path.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import TrackerError, http_exception_handler, tracker_error_handler, validation_exception_handler
from .db.migrate import run_migrations
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware

# Importing the models registers them with the metadata used by create_all.
from .models import user as _user  # noqa: F401
from .models import organization as _organization  # noqa: F401
from .models import project as _project  # noqa: F401
from .models import sprint as _sprint  # noqa: F401
from .models import issue as _issue  # noqa: F401

# ---------- App init ----------
app = FastAPI(title=settings.APP_NAME)

# ---------- DB init/migrations ----------
# ``create_all`` covers fresh databases, ``run_migrations`` upgrades older ones.
Base.metadata.create_all(bind=engine)
run_migrations(engine)

# ---------- Middlewares ----------
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware, org_header=settings.ORG_HEADER)
if settings.ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# ---------- Routers ----------
from .routers import api_auth as api_auth_router  # type: ignore

app.include_router(api_auth_router.router)

from .routers import api_organizations as api_organizations_router  # type: ignore

app.include_router(api_organizations_router.router)

from .routers import api_projects as api_projects_router  # type: ignore

app.include_router(api_projects_router.router)

from .routers import api_sprints as api_sprints_router  # type: ignore

app.include_router(api_sprints_router.router)

from .routers import api_issues as api_issues_router  # type: ignore

app.include_router(api_issues_router.router)

# ---------- Exception handling ----------
# Every error leaves the API in the same {"code", "message", "details"} shape.
app.add_exception_handler(TrackerError, tracker_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


__all__ = ["app"]
