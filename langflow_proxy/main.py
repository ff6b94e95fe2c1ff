# Role: FastAPI app bootstrap. Loads environment config early, sets up logging, registers routers,
# and exposes health/docs endpoints.

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import langflow_proxy.config
langflow_proxy.config.load_env()

from langflow_proxy.logging_config import setup_logging
setup_logging()

from langflow_proxy.api.rag import error_envelope
from langflow_proxy.api.rag import router as rag_router

app = FastAPI(title="Langflow Proxy API", version="0.1.0")
app.include_router(rag_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Key line: keep the {success, error} envelope (and 500) even for malformed bodies.
    return error_envelope(f"Invalid request: {exc.errors()}")


@app.get("/")
def root() -> dict:
    # Role: quick discoverability for clients (where are docs/health).
    return {
        "message": "Langflow Proxy API is running",
        "docs": "/docs",
        "health": "/health",
        "chat": "/api/rag",
    }


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
