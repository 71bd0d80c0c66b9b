from interview_assistant.config.settings.base import BackendBaseSettings
from interview_assistant.config.settings.environment import Environment


class BackendProdSettings(BackendBaseSettings):
    DESCRIPTION: str | None = "Production Environment."
    ENVIRONMENT: str = Environment.PRODUCTION.value
