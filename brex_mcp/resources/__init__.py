"""brex:// resources"""

from .router import ResourceRouter
from .template import ResourceTemplate

__all__ = ["ResourceRouter", "ResourceTemplate"]
