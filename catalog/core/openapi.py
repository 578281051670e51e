from fastapi.openapi.utils import get_openapi
from catalog.core.config import settings


def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=settings.APP_NAME,
        version=settings.PROJECT_VERSION,
        description=(
            "Wine catalog served from the KLARA POS API, cached in memory and "
            "merged with admin overrides"
        ),
        routes=app.routes,
        tags=app.openapi_tags,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
