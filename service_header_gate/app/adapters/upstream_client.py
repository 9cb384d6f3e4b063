"""
Upstream client for the Header Gate.
"""

from typing import Iterable, List, Tuple

import httpx
from fastapi import Request, Response

from shared.logging import get_logger
from shared.errors import UpstreamError

# Connection-scoped headers that must not be relayed
HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
})


def _filter_headers(pairs: Iterable[Tuple[str, str]], extra_excluded: frozenset = frozenset()) -> List[Tuple[str, str]]:
    excluded = HOP_BY_HOP_HEADERS | extra_excluded
    return [(key, value) for key, value in pairs if key.lower() not in excluded]


class UpstreamClient:
    """Forwards admitted requests to the protected upstream."""

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = get_logger("header_gate.upstream_client")

    def build_url(self, request: Request) -> str:
        url = f"{self.base_url}{request.url.path}"
        if request.url.query:
            url = f"{url}?{request.url.query}"
        return url

    async def forward(self, request: Request) -> Response:
        """Relay the request and return the upstream response."""
        url = self.build_url(request)
        headers = _filter_headers(request.headers.items(), frozenset({"host", "content-length"}))
        body = await request.body()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                upstream_response = await client.request(
                    request.method,
                    url,
                    headers=headers,
                    content=body,
                )
        except httpx.HTTPError as e:
            self.logger.error("Upstream request failed", url=url, error=str(e))
            raise UpstreamError(self.base_url, str(e) or e.__class__.__name__) from e

        self.logger.debug("Upstream responded", url=url, status_code=upstream_response.status_code)

        # httpx already decoded the body, so length and encoding no longer apply
        response_headers = _filter_headers(
            upstream_response.headers.multi_items(),
            frozenset({"content-length", "content-encoding"})
        )
        response = Response(content=upstream_response.content, status_code=upstream_response.status_code)
        for key, value in response_headers:
            response.headers.append(key, value)
        return response
