from typing import List

from chatrelay.schemas.base import CamelModel


class HealthyResponse(CamelModel):
    status: str = "healthy"
    ollama_url: str
    models_available: int
    required_model_available: bool
    models: List[str]


class UnhealthyResponse(CamelModel):
    status: str = "unhealthy"
    error: str
    ollama_url: str
