from dataclasses import dataclass, field
from typing import List, Optional

from chatrelay.services.ollama_client import GenerationClient
from chatrelay.utils.logger import get_logger

logger = get_logger("chatrelay.services.health")


@dataclass
class HealthReport:
    healthy: bool
    ollama_url: str
    models_available: int = 0
    required_model_available: bool = False
    models: List[str] = field(default_factory=list)
    error: Optional[str] = None


class HealthReporter:
    """Snapshot of the Ollama runtime for operators. Never gates chat requests."""

    def __init__(self, client: GenerationClient):
        self.client = client

    async def report(self) -> HealthReport:
        status = await self.client.check_health()
        if not status.reachable:
            return HealthReport(healthy=False, ollama_url=self.client.base_url, error=status.error)

        if not status.model_available:
            logger.warning("Required model not listed by Ollama", extra={"model": self.client.model})
        return HealthReport(
            healthy=True,
            ollama_url=self.client.base_url,
            models_available=status.listed,
            required_model_available=status.model_available,
            models=status.models,
        )
