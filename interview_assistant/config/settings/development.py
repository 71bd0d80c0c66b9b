from interview_assistant.config.settings.base import BackendBaseSettings
from interview_assistant.config.settings.environment import Environment


class BackendDevSettings(BackendBaseSettings):
    DESCRIPTION: str | None = "Development Environment."
    DEBUG: bool = True
    ENVIRONMENT: str = Environment.DEVELOPMENT.value
