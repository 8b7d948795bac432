"""
Sampling Plan API - application entry point

Run with:
    uvicorn main:app --reload   (from the backend/ directory)
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from api import main_router
from logging_config import setup_logging
from models.schemas import ErrorCode
from services.sampling_service import sampling_service

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Application factory"""
    setup_logging(config.LOG_LEVEL)

    app = FastAPI(title=config.APP_NAME, version=config.APP_VERSION)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(main_router, prefix="/api")

    # Reference tables are constants; a problem here is a build defect
    problems = sampling_service.verify_tables()
    if problems:
        for problem in problems:
            logger.error(f"Sampling table check failed: {problem}")
    else:
        logger.info("Sampling tables verified")

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": "An unexpected error occurred"
                }
            }
        )

    logger.info(f"{config.APP_NAME} {config.APP_VERSION} startup ({config.ENVIRONMENT})")
    return app


app = create_app()
