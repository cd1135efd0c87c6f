import time
import uuid
from pathlib import Path
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi import Path as PathParam
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .auth import get_current_user
from .config import settings
from .db import get_db, init_db
from .errors import FeatureDisabled, NotFound, ParameterMissing, PermissionDenied, RelationshipMismatch
from .logging import configure_logging, log_request, set_request_id
from .models import User
from .permissions import FeatureFlags, PermissionChecker
from .reports import create_originality_report, get_originality_report
from .schemas import MAX_ID, OriginalityReportOut, field_errors
from .store import Created

RecordId = Annotated[int, PathParam(le=MAX_ID)]

logger = configure_logging(settings.log_level)

app = FastAPI(title="Originality Report Service", version="1.0.0")


def get_permissions(db: Session = Depends(get_db)) -> PermissionChecker:
    return PermissionChecker(db)


def get_feature_flags(db: Session = Depends(get_db)) -> FeatureFlags:
    return FeatureFlags(db)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    set_request_id(rid)
    started = time.perf_counter()
    try:
        response = await call_next(request)
        log_request(request.method, request.url.path, response.status_code, started)
    finally:
        set_request_id(None)
    response.headers["X-Request-ID"] = rid
    return response


async def read_payload(request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    # read only after authentication; an unreadable or non-object body counts as empty
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


@app.exception_handler(RequestValidationError)
async def _request_validation(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=field_errors(exc.errors(), skip=1))


@app.exception_handler(NotFound)
async def _not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ParameterMissing)
async def _parameter_missing(request: Request, exc: ParameterMissing):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={exc.param: ["is missing"]})


@app.exception_handler(RelationshipMismatch)
async def _relationship_mismatch(request: Request, exc: RelationshipMismatch):
    return Response(status_code=status.HTTP_401_UNAUTHORIZED)


@app.exception_handler(PermissionDenied)
async def _permission_denied(request: Request, exc: PermissionDenied):
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": "user not authorized to perform that action"},
    )


@app.exception_handler(FeatureDisabled)
async def _feature_disabled(request: Request, exc: FeatureDisabled):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.on_event("startup")
def _startup():
    if not settings.database_url:
        Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
    init_db()
    logger.info("originality service ready on port %s", settings.port)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post(
    "/assignments/{assignment_id}/submissions/{submission_id}/originality_report",
    response_model=OriginalityReportOut,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Field errors"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not found"},
    },
)
def create_report(
    assignment_id: RecordId,
    submission_id: RecordId,
    payload: dict[str, Any] = Depends(read_payload),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    permissions: PermissionChecker = Depends(get_permissions),
    features: FeatureFlags = Depends(get_feature_flags),
):
    result = create_originality_report(db, assignment_id, submission_id, payload, user, permissions, features)
    if isinstance(result, Created):
        return OriginalityReportOut.model_validate(result.report)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=result.errors)


@app.get(
    "/assignments/{assignment_id}/submissions/{submission_id}/originality_report/{file_id}",
    response_model=OriginalityReportOut,
    responses={401: {"description": "Unauthorized"}, 403: {"description": "Forbidden"}, 404: {"description": "Not found"}},
)
def show_report(
    assignment_id: RecordId,
    submission_id: RecordId,
    file_id: RecordId,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    permissions: PermissionChecker = Depends(get_permissions),
    features: FeatureFlags = Depends(get_feature_flags),
):
    report = get_originality_report(db, assignment_id, submission_id, file_id, user, permissions, features)
    return OriginalityReportOut.model_validate(report)
