import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.v1.router import router as v1_router
from app.core.config import settings
from app.core.errors import EngineError
from app.core.telemetry import setup_telemetry
from app.schemas.common import ErrorResponse

logging.basicConfig(level=settings.log_level)

app = FastAPI(title="File Engine API", version="0.1.0")


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    body = ErrorResponse(code=exc.code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    body = ErrorResponse(code="invalid_input", message="Invalid input", details=details)
    return JSONResponse(status_code=422, content=body.model_dump())


setup_telemetry(app)
app.include_router(v1_router)
