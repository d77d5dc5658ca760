"""
Per-request logging. Each request gets a short id, echoed back in the
``X-Request-ID`` header so a chat reply can be matched to its log lines.
"""

import time
import uuid

from fastapi import Request
from loguru import logger

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = {"/api/health"}


async def logging_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
    if request.url.path in QUIET_PATHS:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    start = time.perf_counter()
    with logger.contextualize(request_id=request_id):
        logger.info(f"[{request_id}] → {request.method} {request.url.path}")
        response = await call_next(request)
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        logger.info(f"[{request_id}] ← {request.url.path} [{response.status_code}] {elapsed}ms")

    response.headers[REQUEST_ID_HEADER] = request_id
    return response
