from interview_assistant.utilities.exceptions.database import EntityDoesNotExist


class AttemptNotFound(EntityDoesNotExist):
    """
    Raised when an attempt id does not resolve to an interview record.
    """


class InvalidSlot(Exception):
    """
    Raised when a question slot write does not fit the fixed six-question sequence.
    """


class InvalidTransition(Exception):
    """
    Raised when a chat flow event does not apply to the current phase.
    """


class UpstreamServiceError(Exception):
    """
    Raised when the LLM provider fails, times out or returns an unusable reply.
    """
