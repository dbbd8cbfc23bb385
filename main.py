import uvicorn
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from rca.api.classify import router as classify_router
from rca.core.config import API_HOST, API_PORT, ENABLED_DOMAINS
from rca.core.knowledge import DEFAULT_KNOWLEDGE
from rca.parser.dispatcher import build_dispatcher
from rca.utils.logging_config import setup_logging

setup_logging()
logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.dispatcher = build_dispatcher(DEFAULT_KNOWLEDGE, ENABLED_DOMAINS)
    yield


app = FastAPI(title="Android Diagnostic Root-Cause API", lifespan=lifespan)


# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Incoming: {request.method} {request.url.path} from {client_host}")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"Request failed: {request.method} {request.url.path} - Error: {e}")
            raise

        process_time = (time.time() - start_time) * 1000
        logger.info(
            f"Outgoing: {request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.2f}ms"
        )
        return response


app.add_middleware(LoggingMiddleware)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(classify_router)

if __name__ == "__main__":
    uvicorn.run("main:app", host=API_HOST, port=API_PORT)
