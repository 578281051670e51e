from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog.api.v1.router import router as v1_router
from catalog.core.config import settings
from catalog.core.exceptions.handlers import register_exception_handlers
from catalog.core.lifespan import lifespan
from catalog.core.logging import setup_early_logging
from catalog.core.middlewares import LogRequestsMiddleware
from catalog.core.openapi import custom_openapi
from catalog.core.rate_limiting import setup_rate_limiting
from catalog.core.responses import send_success

# Setup early logging for startup errors
setup_early_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.PROJECT_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Catalog", "description": "KLARA articles merged with overrides"},
        {"name": "Admin", "description": "Cache management and article overrides"},
    ],
)

# Customize OpenAPI schema
app.openapi = lambda: custom_openapi(app)

# Setup rate limiting if enabled
setup_rate_limiting(app)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add logging middleware
app.add_middleware(LogRequestsMiddleware)

# Register all exception handlers
register_exception_handlers(app)

# Include API routers
app.include_router(v1_router)


@app.get("/health")
async def health_check():
    return send_success(
        message="OK",
        data={
            "status": "healthy",
            "version": settings.PROJECT_VERSION,
            "klara_mock": settings.USE_MOCK_KLARA,
        },
    )
