"""redisview: render a Redis key namespace as an annotated tree."""

__version__ = "0.1.0"


class RedisViewError(Exception):
    """User-facing CLI error.

    Raised for malformed URLs, unreachable servers and other fatal
    configuration problems. The message is printed to stderr and the
    process exits with code 1.
    """
