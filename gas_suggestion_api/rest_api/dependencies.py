import fastapi
from pydantic import BaseModel, ConfigDict

from gas_suggestion_api.config import Config
from gas_suggestion_api.services.gas_service import GasService


class Dependencies(BaseModel):
    """
    Holds the dependencies that should exist for the lifetime of the application.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, extra='forbid', frozen=True)

    config: Config
    gas_service: GasService

    def register(self, app: fastapi.FastAPI):
        """
        Registers itself in the application.
        """
        app.state.dependencies = self


def _get(request: fastapi.Request) -> Dependencies:
    return request.app.state.dependencies


def gas_service(request: fastapi.Request) -> GasService:
    return _get(request).gas_service
