class InnerSenseError(Exception):
    """Base class for errors raised by the conversation core."""


class ValidationError(InnerSenseError):
    """Required input is missing or empty. Raised before any session mutation."""


class GenerationError(InnerSenseError):
    """The completion service failed. The user turn is already recorded."""


class PersistenceError(InnerSenseError):
    """Reading or writing durable storage failed.

    Raised by persistence backends only; the session store catches and logs it.
    """
