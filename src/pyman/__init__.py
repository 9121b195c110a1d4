"""pyman: resolve python/pip commands to installed interpreters."""

from .server import PythonManagerServer

__version__ = "0.1.0"

__all__ = ["PythonManagerServer", "__version__"]
