import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from loguru import logger

from config import HOST, PORT, configure_logging
from errors import ErrorKind, WorkoutError
from executions_api import router as executions_router
from limits_api import router as limits_router
from plans_api import router as plans_router
from sessions_api import router as sessions_router

configure_logging()

app = FastAPI(title="Workout Tracker Server", version="1.0.0")

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.LIMIT_EXCEEDED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_STATE_TRANSITION: 409,
    ErrorKind.DUPLICATE_NAME: 409,
    ErrorKind.CONFLICT: 409,
}


@app.middleware("http")
async def log_internal_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.bind(method=request.method, url=str(request.url)).exception(
            "Unhandled exception during request"
        )
        raise


@app.exception_handler(WorkoutError)
async def workout_error_handler(request: Request, exc: WorkoutError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    logger.bind(
        method=request.method,
        path=request.url.path,
        kind=exc.kind.value,
        status_code=status_code,
    ).info(exc.message)
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "kind": exc.kind.value,
            **jsonable_encoder(exc.details),
        },
    )


# Include routers
app.include_router(plans_router)
app.include_router(sessions_router)
app.include_router(executions_router)
app.include_router(limits_router)


@app.get("/")
async def root():
    return {"message": "Welcome to the Workout Tracker Server"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


def serve() -> None:
    """Run the API with uvicorn on HOST:PORT."""
    uvicorn.run(app, host=HOST, port=PORT, log_config=None)


if __name__ == "__main__":
    serve()
