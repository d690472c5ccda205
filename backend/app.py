import logging
from typing import List, Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from deps import Services
from transport.admin import router as admin_router
from transport.webhook import router as webhook_router

logger = logging.getLogger(__name__)

def create_app(services: Services, cors_origins: Optional[List[str]] = None) -> FastAPI:
    app = FastAPI(title="Real Estate WhatsApp Lead Bot")
    app.state.services = services

    # dashboard (React/Vite dev servers by default)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(webhook_router)
    app.include_router(admin_router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            content = {"error": "Route not found", "path": request.url.path}
        else:
            content = {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "message": str(exc)})

    return app
