from __future__ import annotations

from .code import harvest_code
from .interfaces import harvest_interface

__all__ = ["harvest_code", "harvest_interface"]
