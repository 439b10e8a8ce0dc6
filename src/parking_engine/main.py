"""Main application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.errors import register_error_handlers
from .api.router import init_router, router
from .config import AppConfig, load_config_or_default
from .service.facility import FacilityService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_facility(config: AppConfig) -> FacilityService:
    """Create the facility service from configuration."""
    return FacilityService(
        fee_rules=config.fee_rules,
        max_width=config.lot.max_width,
        max_height=config.lot.max_height,
        default_gate_size=config.lot.default_gate_size,
    )


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application configuration; loaded from disk when omitted
    """
    app_config = config or load_config_or_default()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting Parking Lot Engine...")

        logging.getLogger().setLevel(app_config.logging.level.upper())

        facility = build_facility(app_config)
        app.state.config = app_config
        app.state.facility = facility
        init_router(facility)

        rules = app_config.fee_rules
        logger.info(
            f"Fee rules: first {rules.flat_rate.max_hours}h at {rules.flat_rate.hourly} "
            f"{rules.currency}/h, daily cap {rules.flat_rate.daily} {rules.currency}"
        )
        logger.info(f"Parking Lot Engine ready on http://{app_config.api.host}:{app_config.api.port}")

        yield  # Application runs here

        logger.info("Shutdown complete")

    app = FastAPI(
        title="Parking Lot Engine",
        description="API for managing a parking lot: gates, slot allocation and parking fees",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.api.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(router)
    return app


# Create FastAPI app
app = create_app()


def main():
    """Run the application."""
    cfg = load_config_or_default()

    uvicorn.run(
        "parking_engine.main:app",
        host=cfg.api.host,
        port=cfg.api.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
