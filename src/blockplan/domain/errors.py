# src/blockplan/domain/errors.py


class ConfigurationError(ValueError):
    """
    Raised when an input combination would force a division by zero
    (e.g. a rental yield derived from a zero purchase price).

    Guardrail failures are never raised; they are returned as violations.
    """
