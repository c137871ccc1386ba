from __future__ import annotations

from fastapi import FastAPI

from lumiq.application.dtos.common_dto import HealthResponse, RootResponse
from lumiq.infrastructure.api.middlewares import add_default_middlewares
from lumiq.infrastructure.api.routes.project_routes import router as project_router
from lumiq.infrastructure.api.routes.session_routes import router as session_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Lumiq Editor",
        version="0.1.0",
        description="""
        ## Lumiq Editor API

        Non-destructive photo editing: open an image, adjust brightness,
        contrast, saturation and warmth, rotate and crop it, preview the result
        and export a flattened copy.

        ### Features
        - **Editor Sessions**: One in-memory session per opened image
        - **Adjustments**: Out-of-range values are clamped, never rejected
        - **Undo / Redo**: Linear history of up to 20 rotation checkpoints
        - **Preview**: Rotated/cropped pixels plus a 4x4 color matrix filter
        - **Export**: Flattened JPEG/PNG stored as a `LUMIQ_*` project

        ### Error Responses
        - **400 Bad Request**: Invalid image upload
        - **404 Not Found**: Session or project does not exist
        - **409 Conflict**: Session has no image loaded
        - **422 Unprocessable Entity**: Validation error in request body
        - **500 Internal Server Error**: Storage failure
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    add_default_middlewares(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the Lumiq API",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "lumiq-editor", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(session_router)
    app.include_router(project_router)
    return app


app = create_app()
