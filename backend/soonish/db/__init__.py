"""Database utilities and models."""

from soonish.db.base import Base
from soonish.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
