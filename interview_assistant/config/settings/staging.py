from interview_assistant.config.settings.base import BackendBaseSettings
from interview_assistant.config.settings.environment import Environment


class BackendStageSettings(BackendBaseSettings):
    DESCRIPTION: str | None = "Test Environment."
    DEBUG: bool = True
    ENVIRONMENT: str = Environment.STAGING.value
