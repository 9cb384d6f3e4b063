"""
Header Gate service package.

The gate sits in front of an upstream and decides, before any handler
runs, whether a request's headers satisfy the configured policy.

Structure:
- app.main: FastAPI app, health/metrics routes and forwarding route.
- app.rules: Header rule model, validation and matching engine.
- app.domain: The admission middleware wrapping the app.
- app.adapters: HTTP client forwarding admitted requests upstream.
"""
