"""ORM models exposed for metadata discovery."""
from soonish.db.models.plan import PlanRecord

__all__ = ["PlanRecord"]
