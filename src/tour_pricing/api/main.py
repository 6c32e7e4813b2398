from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tour_pricing import __version__
from tour_pricing.api.prices_api import router as prices_router
from tour_pricing.config.settings import configure_logging, get_settings

configure_logging()

app = FastAPI(
    title="Tour Pricing API",
    description="Price configuration and calculation engine for tour product lines",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include price configuration API
app.include_router(prices_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Tour Pricing API Active"}


@app.get("/system/status")
async def get_status():
    settings = get_settings()
    return {
        "engine_active": True,
        "remote_base_url": settings.remote_base_url,
        "price_year": settings.price_year,
        "cache_file": str(settings.cache_path) if settings.cache_path else None,
    }
