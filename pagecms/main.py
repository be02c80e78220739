from __future__ import annotations

import logging

from fastapi.openapi.utils import get_openapi
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from pagecms.api.router import api_router
from pagecms.core.config import create_app
from pagecms.core.logging import configure_logging
from pagecms.core.settings import settings

configure_logging()
logger = logging.getLogger(__name__)

app = create_app()
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")


def _inject_bearer_security(app):
    """
    Declara bearerAuth en OpenAPI (sólo documentación). Las lecturas públicas
    siguen funcionando sin token; la seguridad real vive en cada endpoint.
    """
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=settings.APP_NAME,
            version="1.0.0",
            description="API de contenido bilingüe (en/ta) por página y sección",
            routes=app.routes,
        )
        components = openapi_schema.setdefault("components", {})
        components.setdefault("securitySchemes", {})["bearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi


app.include_router(api_router, prefix=settings.API_PREFIX)
_inject_bearer_security(app)

logger.info("%s ready (env=%s, prefix=%s)", settings.APP_NAME, settings.ENV, settings.API_PREFIX)
