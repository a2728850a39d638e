"""FastAPI application for the swap router.

Note: Rate limiting is not implemented at the application level. It should
be handled at the infrastructure layer (reverse proxy / load balancer).
"""

import os

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from swap_router import __version__
from swap_router.api.endpoints import get_quote_service, router
from swap_router.service import QuoteService

HOST = os.environ.get("ROUTER_HOST", "0.0.0.0")
PORT = int(os.environ.get("ROUTER_PORT", "8000"))
DEBUG = os.environ.get("ROUTER_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (10 MB)
MAX_REQUEST_SIZE = 10 * 1024 * 1024

app = FastAPI(
    title="Swap Router",
    description="Split-route swap planner for Uniswap V2/V3 liquidity",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health(service: QuoteService = Depends(get_quote_service)) -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "v3_enabled": service.v3_enabled}


def run() -> None:
    """Run the router API server.

    Configuration via environment variables:
    - ROUTER_HOST: Host to bind to (default: 0.0.0.0)
    - ROUTER_PORT: Port to bind to (default: 8000)
    - ROUTER_DEBUG: Enable debug/reload mode (default: false)
    - ROUTER_RPC_URL: Enables on-chain V3 quoting
    """
    uvicorn.run(
        "swap_router.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
