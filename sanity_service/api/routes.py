"""API routes for triggering sanity runs and reading their results.

Endpoints:
  GET /run-tests          run the full battery once, return the report
  GET /results/{run_id}   stored entries of a run (404 when unknown)
  GET /healthz            liveness of the service itself
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sanity_service.service import RunNotFoundError, RunService
from sanity_service.store import StorageError

logger = logging.getLogger(__name__)

router = APIRouter()


def _service(request: Request) -> RunService:
    return request.app.state.run_service


@router.get("/run-tests")
def run_tests(request: Request) -> Any:
    """Run the battery and return {run_id, report}."""
    try:
        report = _service(request).trigger_run()
    except StorageError as e:
        logger.error("Run aborted, result could not be stored: %s", e)
        return JSONResponse(
            status_code=500,
            content={"message": "Error running tests", "error": str(e)},
        )
    return report.to_dict()


@router.get("/results/{run_id}")
def get_results(run_id: str, request: Request) -> Any:
    """Return every stored entry of a run."""
    try:
        entries = _service(request).fetch_run(run_id)
    except RunNotFoundError:
        return JSONResponse(
            status_code=404,
            content={"message": "No results found for this run ID"},
        )
    except StorageError as e:
        logger.error("Failed to read results for %s: %s", run_id, e)
        return JSONResponse(
            status_code=500,
            content={"message": "Error fetching results", "error": str(e)},
        )
    return [e.to_dict() for e in entries]


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
