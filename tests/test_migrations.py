from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ROOT = Path(__file__).resolve().parents[1]


def test_migrations_build_the_mapped_schema(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'finance.db'}"
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", url)

    command.upgrade(cfg, "head")

    inspector = inspect(create_engine(url))
    assert {"categories", "transactions", "budgets"} <= set(inspector.get_table_names())
    budget_columns = {c["name"] for c in inspector.get_columns("budgets")}
    assert {"category_id", "month", "amount_cents", "carried_over_cents"} <= budget_columns

    command.downgrade(cfg, "base")
    assert "budgets" not in inspect(create_engine(url)).get_table_names()
