# common/api_error/config_error.py
class ConfigurationError(RuntimeError):
    """
    Raised when the environment does not describe a valid configuration.
    """

    pass


__all__ = ["ConfigurationError"]
