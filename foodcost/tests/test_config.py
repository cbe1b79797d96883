"""Tests for configuration and database bootstrapping."""

from pathlib import Path

import pytest
from sqlalchemy import inspect

from foodcost.services import database
from foodcost.utils import config as config_module
from foodcost.utils.config import Config, get_config, reset_config


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    reset_config()
    yield tmp_path
    reset_config()


class TestConfig:
    """Tests for Config and the get_config singleton."""

    def test_production_paths(self, fake_home):
        """Production keeps the database under the user's documents."""
        cfg = Config("production")
        assert cfg.is_production
        assert cfg.database_path == fake_home / "Documents" / "FoodCost" / "foodcost.db"
        assert cfg.database_url.startswith("sqlite:///")
        assert cfg.database_url.endswith("/Documents/FoodCost/foodcost.db")
        assert not cfg.database_exists()

    def test_backup_path(self, fake_home):
        """Backups sit next to the database."""
        cfg = Config("production")
        assert cfg.get_backup_path("copy.db") == cfg.database_path.parent / "copy.db"
        assert cfg.get_backup_path().name.startswith("foodcost_backup_")

    def test_environment_variable(self, fake_home, monkeypatch):
        """FOODCOST_ENV selects the environment on first use."""
        monkeypatch.setenv(config_module.ENVIRONMENT_VARIABLE, "production")
        assert get_config().environment == "production"

    def test_singleton_keeps_environment(self, fake_home, caplog):
        """A later, different environment is ignored with a warning."""
        first = get_config("production")
        assert get_config("development") is first
        assert "singleton already exists" in caplog.text


class TestDatabase:
    """Tests for engine creation and table initialization."""

    def test_init_database_creates_tables(self):
        """All model tables are created on a fresh engine."""
        engine = database.create_database_engine("sqlite:///:memory:")
        database.init_database(engine)

        tables = inspect(engine).get_table_names()
        for table in (
            "ingredients",
            "recipes",
            "recipe_ingredients",
            "recipe_instructions",
            "dishes",
            "sales_records",
        ):
            assert table in tables
        engine.dispose()

    def test_initialize_app_database(self, fake_home, monkeypatch):
        """The application database file is created and verified."""
        monkeypatch.delenv(config_module.ENVIRONMENT_VARIABLE, raising=False)
        database.close_connections()
        try:
            database.initialize_app_database()
            assert get_config().database_exists()
            assert database.verify_database()
        finally:
            database.close_connections()

    def test_session_scope_rolls_back(self, test_db):
        """Errors inside the scope roll the transaction back."""
        from foodcost.models import Ingredient

        with pytest.raises(RuntimeError):
            with database.session_scope() as session:
                session.add(Ingredient(name="Sale", unit="kg", cost_per_unit=0.5))
                session.flush()
                raise RuntimeError("boom")

        with database.session_scope() as session:
            assert session.query(Ingredient).count() == 0
