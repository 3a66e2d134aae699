import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One line when a request arrives, one when it leaves.

    The request id is taken from the client when supplied, so a caller can
    correlate its own logs, and is always echoed back.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        client = request.client.host if request.client else "-"

        logger.info("[START] %s %s %s client=%s", request_id, request.method, request.url.path, client)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("[ERROR] %s %s duration_ms=%d err=%r", request_id, request.url.path, _elapsed_ms(start), e)
            raise

        logger.info(
            "[END]   %s status=%d persist=%s duration_ms=%d",
            request_id,
            response.status_code,
            response.headers.get("x-persist-status", "-"),
            _elapsed_ms(start),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
