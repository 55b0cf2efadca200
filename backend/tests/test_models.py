from soonish.db.base import Base
from soonish.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_plans_table() -> None:
    assert "plans" in Base.metadata.tables


def test_plans_table_columns() -> None:
    columns = set(Base.metadata.tables["plans"].columns.keys())
    expected = {
        "id",
        "title",
        "time_type",
        "period_preset",
        "period_label",
        "deadline_preset",
        "custom_deadline_date",
        "period_start",
        "period_end",
        "deadline",
        "memo",
        "is_completed",
        "is_archived",
        "created_at",
        "updated_at",
    }

    assert columns == expected
