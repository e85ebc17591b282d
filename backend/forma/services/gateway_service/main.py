"""Factory for obtaining the model gateway for the configured run mode."""

from forma.config.settings import get_settings
from forma.services.gateway_service.model_gateway import ModelGateway
from forma.services.gateway_service.mock_gateway import MockModelGateway


class ModelGateways:
    """Factory wrapper choosing the actual or mock gateway.

    Keeps RUN_MODE handling in one place.
    """

    @staticmethod
    def get_gateway() -> ModelGateway:
        """Provide a gateway matching RUN_MODE."""
        settings = get_settings()
        if settings.is_mock:
            return MockModelGateway(settings=settings)
        return ModelGateway(settings=settings)
