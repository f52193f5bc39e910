"""FastAPI application factory for the activation diagnostics surface.

Endpoints:
    GET /health
    GET /config              resolver settings + effective exclusions
    GET /autoconfig          full activation report (?kind= filter)
    GET /autoconfig/{module} single verdict
    GET /context             final capability query context
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from activation import metrics
from activation.config import ConfigError
from activation.errors import ActivationError, map_exception
from activation.modules import ActivationManager, get_activation_manager
from activation.report import VerdictKind


def create_app(
    manager: ActivationManager | None = None,
    manager_factory: Optional[Callable[[], ActivationManager]] = None,
) -> FastAPI:
    app = FastAPI(
        title="Activation diagnostics",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
    )

    def _manager() -> ActivationManager:
        if manager is not None:
            return manager
        return (manager_factory or get_activation_manager)()

    async def _structural_error(request: Request, exc: Exception):
        return JSONResponse(
            status_code=500,
            content={"error_type": map_exception(exc), "message": str(exc)},
        )

    app.add_exception_handler(ActivationError, _structural_error)
    app.add_exception_handler(ConfigError, _structural_error)

    @app.get("/health")
    def health():  # noqa: D401
        return {"status": "ok"}

    @app.get("/config")
    def config():  # noqa: D401
        mm = _manager()
        resolver_cfg = mm.config.resolver
        return {
            "enabled": resolver_cfg.enabled,
            "catalog_dir": resolver_cfg.catalog_dir,
            "environment": resolver_cfg.environment,
            "exclusions": mm.exclusions,
        }

    @app.get("/autoconfig")
    def autoconfig(kind: str | None = None):  # noqa: D401
        report = _manager().report
        if kind is None:
            verdicts = list(report)
        else:
            try:
                verdicts = report.by_kind(kind)
            except ValueError:
                allowed = ", ".join(k.value for k in VerdictKind)
                raise HTTPException(
                    status_code=400,
                    detail=f"unknown kind '{kind}' (allowed: {allowed})",
                )
        return {
            "verdicts": [v.as_dict() for v in verdicts],
            "counts": report.counts(),
        }

    @app.get("/autoconfig/{module}")
    def autoconfig_module(module: str):  # noqa: D401
        report = _manager().report
        if module not in report:
            raise HTTPException(
                status_code=404, detail=f"unknown module '{module}'"
            )
        return report.get(module).as_dict()

    @app.get("/context")
    def context():  # noqa: D401
        return _manager().context.as_dict()

    @app.middleware("http")
    async def _metrics_mw(request: Request, call_next):  # noqa: D401
        start = time.time()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.time() - start) * 1000.0
            # matched template keeps one series per endpoint
            route = request.scope.get("route")
            labels = {
                "route": getattr(route, "path", request.url.path),
                "method": request.method,
            }
            metrics.inc("api_request_total", labels)
            metrics.observe("api_request_latency_ms", duration_ms, labels)
            if response is not None and response.status_code >= 400:
                metrics.inc(
                    "api_request_errors_total",
                    labels | {"status": response.status_code},
                )

    return app


def main() -> None:  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "actuator.api.app:create_app",
        factory=True,
        host="127.0.0.1",
        port=8000,
        reload=False,
    )


if __name__ == "__main__":  # pragma: no cover
    main()
