"""
Header Gate service.

Admits or rejects every inbound request according to a header policy
loaded at startup, then forwards admitted requests to the configured
upstream.
"""

import sys
from typing import Any, Dict, Optional

from fastapi import Request

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import PolicyConfigurationError
from shared.logging import get_logger
from .adapters.upstream_client import UpstreamClient
from .domain.gate import install_header_gate
from .rules.loader import load_policy
from .rules.models import PolicySet

FORWARDED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


class HeaderGateService(BaseService):
    """Header Gate service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, policy_set: Optional[PolicySet] = None):
        super().__init__("header_gate", 8000, config=config)

        # Fails startup on an invalid policy
        self.policy_set = policy_set if policy_set is not None else load_policy(self.config)

        self.upstream_client = None
        if self.config.upstream_url:
            self.upstream_client = UpstreamClient(
                self.config.upstream_url,
                timeout=self.config.upstream_timeout_seconds
            )

        self.gate = install_header_gate(
            self.app,
            self.policy_set,
            metrics=self.metrics,
            exempt_paths=self.config.exempt_paths,
            logger=get_logger("header_gate.matcher"),
        )

        self._setup_forwarding_routes()

        self.logger.info(
            "Header gate ready",
            rules=len(self.policy_set),
            headers=self.policy_set.header_names,
            upstream=self.config.upstream_url
        )

        # Expose service instance via app state for introspection/testing
        self.app.state.header_gate_service = self

    def _setup_forwarding_routes(self):
        """Set up the catch-all route that serves admitted requests."""

        @self.app.api_route("/{path:path}", methods=FORWARDED_METHODS)
        async def forward(request: Request, path: str):
            """Forward an admitted request upstream."""
            if self.upstream_client is None:
                return {"status": "admitted", "path": f"/{path}"}

            return await self.upstream_client.forward(request)

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Report policy and upstream configuration."""
        return {
            "policy_rules": len(self.policy_set),
            "upstream": self.config.upstream_url or "none",
        }


def create_app():
    """Create header gate service application."""
    service = HeaderGateService()
    return service.app


if __name__ == "__main__":
    try:
        service = HeaderGateService()
    except PolicyConfigurationError as e:
        get_logger("header_gate").error("Invalid header policy, refusing to start", error=e.message, details=e.details)
        sys.exit(1)
    service.run()
