"""API endpoints for the swap router."""

import structlog
from fastapi import APIRouter, Depends

from swap_router.models.api import QuoteRequest, QuoteResponse
from swap_router.service import QuoteService, get_default_service

logger = structlog.get_logger()

router = APIRouter()


def get_quote_service() -> QuoteService:
    """Dependency provider for the quote service.

    Override this in tests to inject a service with mock collaborators:
        app.dependency_overrides[get_quote_service] = lambda: service

    Returns:
        The service used to plan swaps.
    """
    return get_default_service()


@router.post("/quote", response_model_exclude_none=True)
async def quote(
    request: QuoteRequest,
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    """Plan the best split route for a swap.

    Args:
        request: Tokens, amount, trade type, gas price and pool snapshots
        service: Injected quote service (via FastAPI Depends)

    Returns:
        QuoteResponse with the chosen routes, or no routes if none exists.

    Error Handling:
        - Invalid request schema: Returns 422 Validation Error (Pydantic)
        - Router exception: Logs error, returns an empty response
    """
    logger.info(
        "received_quote_request",
        chain_id=request.chain_id,
        token_in=request.token_in.address[-8:],
        token_out=request.token_out.address[-8:],
        amount=request.amount,
        trade_type=request.trade_type.value,
        v2_pools=len(request.v2_pools),
        v3_pools=len(request.v3_pools),
    )

    try:
        response = await service.quote(request)
    except Exception:
        # Fail closed: a partial plan is worse than none
        logger.exception(
            "router_error",
            chain_id=request.chain_id,
            message="Router raised an exception, returning empty response",
        )
        return QuoteResponse.empty()

    logger.info(
        "returning_quote",
        route_count=len(response.routes),
        quote=response.quote,
        quote_gas_adjusted=response.quote_gas_adjusted,
    )
    return response
