"""dmmscout - catalog metadata resolver for DMM/FANZA detail pages."""

from .__version__ import __version__

__all__ = ["__version__"]
