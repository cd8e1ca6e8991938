import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .config import get_settings
from .handler import cors_headers, handle_request, server_error_body
from .services.errors import AiServiceError

settings = get_settings()

logger = logging.getLogger("pricesense-ai")
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

app = FastAPI(title="PriceSense AI Price Prediction Service", version="1.0.0")

PREDICT_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _json(status_code: int, content: dict) -> JSONResponse:
    # content-type is set by JSONResponse itself
    headers = {k: v for k, v in cors_headers().items() if k != "Content-Type"}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(AiServiceError)
async def ai_service_error_handler(request: Request, exc: AiServiceError):
    logger.warning("AI service error at %s: %s", request.url.path, exc.message)
    return _json(exc.http_status, exc.to_contract_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception at %s", request.url.path)
    return _json(500, server_error_body())


@app.get("/health", status_code=200)
async def health_get():
    return {"status": "ok"}


@app.head("/health", status_code=200)
async def health_head():
    return Response(status_code=200)


@app.api_route("/predict", methods=PREDICT_METHODS)
async def predict(request: Request):
    body = await request.body()
    status_code, content = await run_in_threadpool(handle_request, request.method, body)
    return _json(status_code, content)
