from pathlib import Path

from alembic.config import Config

from alembic import command

_DEFAULT_INI = Path("alembic.ini")


def alembic_config(db_url: str, ini_path: str | Path = _DEFAULT_INI) -> Config:
    ini = Path(ini_path)
    cfg = Config(str(ini))
    cfg.set_main_option("script_location", str(ini.resolve().parent / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def run_migrations(db_url: str, ini_path: str | Path = _DEFAULT_INI) -> None:
    command.upgrade(alembic_config(db_url, ini_path), "head")
