"""Engine error taxonomy.

Every error is raised before any state is mutated. The HTTP shell maps
``status_code`` onto the response; the engine itself never retries.
"""


class EngineError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(EngineError):
    """Malformed input: non-positive duration, unknown type, bad XP amount."""

    status_code = 422


class ConflictError(EngineError):
    """A second active session was requested for the same owner."""

    status_code = 409


class InvalidStateError(EngineError):
    """The operation is not valid for the session's current status."""

    status_code = 409


class NotFoundError(EngineError):
    status_code = 404
