# Import all handlers so they register themselves.
from . import health_checks  # noqa: F401
