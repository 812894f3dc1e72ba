"""
Stableswap pricing API.

Serves cached stable/native rates and controls background polling. Swaps are
not exposed over HTTP; they need a caller-side signer.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from api.router_registry import get_router_bindings
from api.services.prices import price_service
from stableswap import __version__
from stableswap.logging import log
from stableswap.settings.config import settings

app = FastAPI(
    title="Stableswap API",
    description="Cached stable-token pricing against the native asset",
    version=__version__,
)


@app.on_event("startup")
async def startup_event():
    log.info(f"Application startup: chain={settings.chain} environment={settings.environment}")


@app.on_event("shutdown")
async def shutdown_event():
    await price_service.shutdown()
    log.info("Application shutdown: price polling stopped.")


@app.api_route("/health", methods=["GET", "HEAD"])
async def health_check():
    """Health check endpoint"""
    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "service": settings.app_name,
            "version": __version__,
            "chain": settings.chain,
        },
    )


for binding in get_router_bindings():
    binding.include(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
