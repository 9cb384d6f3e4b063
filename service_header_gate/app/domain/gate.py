"""
Header gate middleware.

Runs the header matcher before any route handler. Admitted requests are
passed on untouched; rejected requests receive a plain 403 "Not allowed".
"""

from typing import Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..rules.matcher import HeaderMatcher
from ..rules.models import PolicySet, Verdict

REJECT_BODY = "Not allowed"
REJECT_STATUS = 403


class HeaderGate:
    """Admission middleware for FastAPI."""

    def __init__(self, matcher: HeaderMatcher, metrics: Optional[MetricsCollector] = None,
                 exempt_paths: Iterable[str] = ()):
        self.matcher = matcher
        self.metrics = metrics
        self.exempt_paths = frozenset(exempt_paths)
        self.logger = get_logger("header_gate.gate")

    def check_request(self, request: Request) -> Verdict:
        """Evaluate the header policy for a request."""
        try:
            return self.matcher.evaluate(request.headers)
        except Exception as e:
            # Faults while evaluating are answered like a policy rejection
            self.logger.error("Header policy evaluation failed", path=request.url.path, error=str(e), exc_info=True)
            return Verdict(admitted=False)

    async def __call__(self, request: Request, call_next):
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        verdict = self.check_request(request)

        if self.metrics is not None:
            self.metrics.record_decision(verdict.admitted, verdict.rejected_by)

        if verdict.admitted:
            self.logger.debug("Request admitted", method=request.method, path=request.url.path)
            return await call_next(request)

        self.logger.warning(
            "Request rejected by header policy",
            method=request.method,
            path=request.url.path,
            header=verdict.rejected_by
        )
        return PlainTextResponse(REJECT_BODY, status_code=REJECT_STATUS)


def install_header_gate(app: FastAPI, policy_set: PolicySet, metrics: Optional[MetricsCollector] = None,
                        exempt_paths: Iterable[str] = (), logger=None) -> HeaderGate:
    """Wrap ``app`` with a header gate enforcing ``policy_set``."""
    gate = HeaderGate(HeaderMatcher(policy_set, logger=logger), metrics=metrics, exempt_paths=exempt_paths)
    app.middleware("http")(gate)
    return gate
