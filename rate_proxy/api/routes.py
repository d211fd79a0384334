from fastapi import APIRouter, Request

from rate_proxy.schemas.health import HealthResponse

router = APIRouter()


def _public_rates(snapshot) -> dict[str, dict]:
    return {code: quote.to_public() for code, quote in snapshot.rates.items()}


@router.get('/rates')
def get_rates(request: Request):
    snapshot = request.app.state.rate_cache.read()
    return _public_rates(snapshot)


@router.get('/health')
def get_health(request: Request):
    cache = request.app.state.rate_cache
    snapshot = cache.read()
    health = HealthResponse(
        status='ok' if cache.has_published else 'loading',
        updated_at=snapshot.updated_at.isoformat() if snapshot.updated_at else None,
        session_alive=request.app.state.session_manager.is_alive(),
        rates=_public_rates(snapshot),
        recent_logs=request.app.state.log_buffer.lines(),
    )
    return health.model_dump(by_alias=True)


@router.get('/metrics/refresh')
def refresh_metrics(request: Request):
    return request.app.state.refresh_scheduler.metrics()
