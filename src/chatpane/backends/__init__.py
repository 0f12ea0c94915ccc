"""Registry of response-generation backends."""

from ..provider import ResponseService
from .echo import EchoService
from .openai_chat import OpenAIService

SERVICES: dict[str, type[ResponseService]] = {
    EchoService.name: EchoService,
    OpenAIService.name: OpenAIService,
}


def get_service(name: str) -> ResponseService:
    """Instantiate the backend registered under ``name``."""
    try:
        service_class = SERVICES[name]
    except KeyError:
        raise ValueError(f"Unknown backend {name!r}; choose from {sorted(SERVICES)}") from None
    return service_class()
