"""
Registry Collector Web API.

FastAPI backend для просмотра микросервисов по stage'ам.
"""

from .. import __version__

__all__ = ["__version__"]
