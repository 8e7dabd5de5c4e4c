"""urllib-backed transport for the pipelines REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .types import HttpRequest, HttpResponse, RequestError, check_seconds

logger = logging.getLogger(__name__)


@dataclass
class UrllibTransport:
    """Send requests with ``urlopen``; HTTP error statuses are returned, not raised."""

    timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        check_seconds("request timeout", self.timeout_seconds, allow_zero=False)

    def send(self, request: HttpRequest) -> HttpResponse:
        req = Request(
            request.url,
            data=request.encoded_body(),
            headers=request.headers,
            method=request.method,
        )
        logger.debug(f"{request.method} {request.url}")
        try:
            with urlopen(req, timeout=self.timeout_seconds) as resp:
                text = resp.read().decode("utf-8", errors="replace")
                status = resp.status
        except HTTPError as exc:
            text = exc.read().decode("utf-8", errors="replace") if exc.fp is not None else ""
            logger.debug(f"{request.method} {request.url} -> HTTP {exc.code}")
            return HttpResponse(status=exc.code, body=text, url=request.url)
        except (URLError, TimeoutError, OSError) as exc:
            reason = getattr(exc, "reason", exc)
            raise RequestError(f"{request.method} {request.url} failed: {reason}", url=request.url) from exc
        logger.debug(f"{request.method} {request.url} -> HTTP {status}")
        return HttpResponse(status=status, body=text, url=request.url)
