"""JSON API router — thin wrapper over the cached readers."""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, Response

from steamhistory.common.exceptions import AppNotFoundError
from steamhistory.common.schemas import ErrorResponse

router = APIRouter()

_JSON = "application/json"


def _get_reader():
    from steamhistory.deps import get_reader
    return get_reader()


def _error(status_code: int, error: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code).model_dump(),
    )


@router.get("/apps")
async def search_apps(q: str | None = Query(default=None, max_length=255)):
    if q is None or not q.strip():
        return _error(400, "No query", "NO_QUERY")
    payload = await _get_reader().search(q)
    return Response(content=payload, media_type=_JSON)


@router.get("/apps/popular")
async def popular_apps():
    payload = await _get_reader().popular_today()
    return Response(content=payload, media_type=_JSON)


@router.get("/history/{app_id}")
async def app_history(app_id: int):
    try:
        payload = await _get_reader().history_view(app_id)
    except AppNotFoundError as e:
        return _error(404, e.message, e.code)
    return Response(content=payload, media_type=_JSON)
