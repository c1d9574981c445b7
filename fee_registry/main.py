from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fee_registry.api.v1.fee_items.router import router as fee_items_router
from fee_registry.api.v1.fee_statistics.router import router as fee_statistics_router
from fee_registry.api.v1.fee_types.router import router as fee_types_router
from fee_registry.core.logging import setup_logging


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="Fee Registry")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(fee_types_router)
    app.include_router(fee_items_router)
    app.include_router(fee_statistics_router)

    return app


app = create_app()
