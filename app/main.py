# app/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import include_routers
from app.data.database import Base, init_db
from app.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database...")
    try:
        init_db()
        logger.info(f"Database tables ready: {list(Base.metadata.tables.keys())}")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    yield


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # jednolite ciało błędu {"message": ...}
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": str(exc) or "Internal server error"})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}" for err in errors
    ) or "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Course Commerce Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    include_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
