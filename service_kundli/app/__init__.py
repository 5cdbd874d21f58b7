"""
Kundli proxy service package.

The service fronts a third-party astrology provider so that provider
credentials never leave the server:
- Authentication: OAuth2 client-credentials grant with a cached bearer token
- Query repair: restores the UTC-offset plus sign lost in transport
- Fan-out: kundli, dasha and planet-position resources called concurrently
- Merge: one combined payload, or one error naming the failing resource

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.adapters: HTTP clients for the provider.
- app.auth: credentials loading and the token cache.
- app.domain: models, query normalizer, merger, and request handler.
"""
