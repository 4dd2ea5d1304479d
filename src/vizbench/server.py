"""Workspace API server.

A Starlette application exposing workspace data, generated pages, FSMs,
screenshots and visual evaluations as JSON, plus the workspace directory
itself as static files under ``/workspace``.
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from .config import VizbenchConfig
from .constants import API_VERSION
from .errors import (
    EntryNotFoundError,
    EvaluationError,
    EvaluationNotFoundError,
    FsmNotFoundError,
    VizbenchError,
)
from .evaluation.visual import VisualEvaluator
from .middleware.ratelimit import RateLimitMiddleware
from .middleware.security import SecurityHeadersMiddleware
from .workspace import WorkspaceStore, format_timestamp

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[JSONResponse]]

_NOT_FOUND = {
    EntryNotFoundError: "Entry not found",
    FsmNotFoundError: "FSM not found",
    EvaluationNotFoundError: "Evaluation not found",
}


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse({"error": error, "message": message}, status_code=status_code)


def api_errors(failure: str) -> Callable[[Handler], Handler]:
    """Map exceptions raised by a route to JSON error responses.

    Missing entries, FSMs and evaluations become 404, invalid names 400, and
    any other failure 500 with ``failure`` as the error. Unexpected exceptions
    are logged with their traceback.
    """

    def decorator(handler: Handler) -> Handler:
        @functools.wraps(handler)
        async def wrapper(request: Request) -> JSONResponse:
            try:
                return await handler(request)
            except tuple(_NOT_FOUND) as e:
                return error_response(404, _NOT_FOUND[type(e)], str(e))
            except json.JSONDecodeError as e:
                logger.error("%s: invalid JSON: %s", failure, e)
                return error_response(500, failure, f"Invalid JSON: {e}")
            except ValueError as e:
                return error_response(400, "Invalid request", str(e))
            except (VizbenchError, OSError) as e:
                logger.error("%s: %s", failure, e)
                return error_response(500, failure, str(e))
            except Exception as e:
                logger.exception("%s: unexpected error", failure)
                return error_response(500, failure, str(e))

        return wrapper

    return decorator


def create_app(
    config: VizbenchConfig | None = None,
    evaluator: VisualEvaluator | None = None,
) -> Starlette:
    """Create the API application.

    Args:
        config: Server configuration; loaded from the environment when omitted.
        evaluator: Visual evaluator used by ``POST /api/evaluation``; created
            lazily from ``config`` when omitted.
    """
    if config is None:
        config = VizbenchConfig.from_env()
    store = WorkspaceStore(config.workspace_path)
    evaluators: list[VisualEvaluator] = [evaluator] if evaluator else []

    def get_evaluator() -> VisualEvaluator:
        if not evaluators:
            evaluators.append(VisualEvaluator(config))
        return evaluators[0]

    @api_errors("Failed to list workspaces")
    async def list_workspaces(request: Request) -> JSONResponse:
        return JSONResponse(store.list_workspaces())

    @api_errors("Failed to load workspace data")
    async def workspace_data(request: Request) -> JSONResponse:
        return JSONResponse(store.load_entries(request.path_params["workspace"]))

    @api_errors("Failed to load entry")
    async def workspace_entry(request: Request) -> JSONResponse:
        params = request.path_params
        return JSONResponse(store.load_entry(params["workspace"], params["uuid"]))

    @api_errors("Failed to list HTML files")
    async def workspace_html(request: Request) -> JSONResponse:
        return JSONResponse(store.list_html(request.path_params["workspace"]))

    @api_errors("Failed to compute workspace stats")
    async def workspace_stats(request: Request) -> JSONResponse:
        return JSONResponse(store.workspace_stats(request.path_params["workspace"]))

    @api_errors("Failed to read embedded FSM")
    async def embedded_fsm(request: Request) -> JSONResponse:
        params = request.path_params
        return JSONResponse(store.embedded_fsm(params["workspace"], params["filename"]))

    @api_errors("Failed to read FSM file")
    async def fsm_file(request: Request) -> JSONResponse:
        params = request.path_params
        return JSONResponse(store.fsm_file(params["workspace"], params["file_id"]))

    @api_errors("Failed to list screenshots")
    async def screenshots(request: Request) -> JSONResponse:
        params = request.path_params
        return JSONResponse(store.list_screenshots(params["workspace"], params["filename"]))

    @api_errors("Failed to read evaluation")
    async def get_evaluation(request: Request) -> JSONResponse:
        params = request.path_params
        return JSONResponse(store.load_evaluation(params["workspace"], params["filename"]))

    @api_errors("Failed to run evaluation")
    async def run_evaluation(request: Request) -> JSONResponse:
        params = request.path_params
        try:
            evaluation = await get_evaluator().evaluate_html_file(
                params["workspace"], params["filename"]
            )
        except EvaluationError as e:
            logger.error("Evaluation of %s failed: %s", params["filename"], e)
            return JSONResponse({"status": "error", "error": str(e)}, status_code=500)
        return JSONResponse(
            {"status": "success", "message": "Evaluation completed", "evaluation": evaluation}
        )

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "timestamp": format_timestamp(datetime.now(timezone.utc)),
                "version": API_VERSION,
            }
        )

    routes = [
        Route("/api/health", health),
        Route("/api/workspaces", list_workspaces),
        Route("/api/workspaces/{workspace}/data", workspace_data),
        Route("/api/workspaces/{workspace}/data/{uuid}", workspace_entry),
        Route("/api/workspaces/{workspace}/html", workspace_html),
        Route("/api/workspaces/{workspace}/stats", workspace_stats),
        Route("/api/fsm-data/{workspace}/{filename}", embedded_fsm),
        Route("/api/fsm/{workspace}/{file_id}", fsm_file),
        Route("/api/screenshots/{workspace}/{filename}", screenshots),
        Route("/api/evaluation/{workspace}/{filename}", get_evaluation, methods=["GET"]),
        Route("/api/evaluation/{workspace}/{filename}", run_evaluation, methods=["POST"]),
        Mount(
            "/workspace",
            app=StaticFiles(directory=config.workspace_path, check_dir=False),
            name="workspace",
        ),
    ]

    # Outermost first: CORS answers preflights, then rate limiting rejects
    # before any work, then security headers wrap every response.
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins or ["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        ),
        Middleware(RateLimitMiddleware, requests_per_minute=config.rate_limit),
        Middleware(SecurityHeadersMiddleware),
    ]

    logger.info("API serving workspaces from %s", config.workspace_path)
    return Starlette(routes=routes, middleware=middleware)


async def serve(config: VizbenchConfig) -> None:
    """Run the API server with uvicorn until it is stopped."""
    import uvicorn

    app = create_app(config)
    uvi_config = uvicorn.Config(app, host=config.host, port=config.port, log_level="info")
    await uvicorn.Server(uvi_config).serve()
