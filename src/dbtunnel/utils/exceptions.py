class TunnelError(Exception):
    """
    Base exception for all tunnel errors
    """
    pass


class InvalidRequestError(TunnelError):
    """
    Raised when an incoming request is missing required input
    """
    pass


class MissingConnectionStringError(InvalidRequestError):
    """
    Raised when the connection string header is absent or blank
    """
    pass


class BackendError(TunnelError):
    """
    Raised when the database driver fails (connect, query, read)
    """
    pass


class ConfigurationError(TunnelError):
    """
    Raised when a settings or run-config file cannot be used
    """
    pass
