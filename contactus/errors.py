class ModelError(Exception):
    """Raised when site configuration is missing or an email cannot be sent."""
