from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from chatrelay.api.deps import get_health_reporter
from chatrelay.schemas.health_schema import HealthyResponse, UnhealthyResponse
from chatrelay.services.health import HealthReporter

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "Backend is running!"


@router.get(
    "/health/ollama",
    response_model=HealthyResponse,
    responses={503: {"model": UnhealthyResponse}},
)
async def ollama_health(reporter: HealthReporter = Depends(get_health_reporter)):
    report = await reporter.report()
    if not report.healthy:
        body = UnhealthyResponse(error=report.error or "Ollama is unreachable", ollama_url=report.ollama_url)
        return JSONResponse(status_code=503, content=body.model_dump(by_alias=True))

    return HealthyResponse(
        ollama_url=report.ollama_url,
        models_available=report.models_available,
        required_model_available=report.required_model_available,
        models=report.models,
    )
