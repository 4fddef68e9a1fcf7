"""Shared pytest fixtures for lookml-support tests."""

from pathlib import Path

import pytest


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def orders_view(fixtures_dir: Path) -> str:
    """A well-formed view and explore."""
    return (fixtures_dir / "orders.view.lkml").read_text()


@pytest.fixture
def messy_view(fixtures_dir: Path) -> str:
    """A view with irregular spacing, unsorted fields and raw SQL."""
    return (fixtures_dir / "messy.view.lkml").read_text()


@pytest.fixture
def ecommerce_model(fixtures_dir: Path) -> str:
    """A model file with a datagroup and an explore with joins."""
    return (fixtures_dir / "ecommerce.model.lkml").read_text()


@pytest.fixture
def pk_naming_view() -> str:
    """Table-backed view whose primary key is not named pk."""
    return """view: orders {
  sql_table_name: public.orders ;;

  dimension: user_id {
    primary_key: yes
    type: number
    sql: ${TABLE}.user_id ;;
  }
}
"""


@pytest.fixture
def missing_pk_view() -> str:
    """Table-backed view without any primary key."""
    return """view: orders {
  sql_table_name: public.orders ;;

  dimension: status {
    type: string
    sql: ${TABLE}.status ;;
  }
}
"""


@pytest.fixture
def bare_join_explore() -> str:
    """Explore whose join uses bare table.column references."""
    return """explore: orders {
  join: users {
    sql_on: orders.user_id = users.id ;;
    relationship: many_to_one
  }
}
"""
