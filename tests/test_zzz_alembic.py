"""Alembic migration chain tests.

These read the revision scripts only; no database is needed.
"""

from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory

ROOT = Path(__file__).resolve().parents[1]


def _scripts() -> ScriptDirectory:
    config = Config(str(ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(ROOT / "alembic"))
    return ScriptDirectory.from_config(config)


def test_single_head() -> None:
    """The migration history has exactly one head."""
    assert _scripts().get_heads() == ["004_decorations"]


def test_linear_history() -> None:
    """Every revision builds on the previous one, starting from the players table."""
    revisions = [rev.revision for rev in _scripts().walk_revisions()]
    assert revisions == ["004_decorations", "003_sync_queue", "002_tanks_and_fish", "001_players"]
