import pytest

from scripts.utils.migration_runner import MigrationError, MigrationRunner

DEPLOY_MULTICALL = """
def migrate(migration):
    migration.deploy("Multicall", label="multicall")
"""

DEPLOY_ZAP = """
def migrate(migration):
    migration.deploy("BeefyZapRouter", label="zap")
"""

INCLUDE_MULTICALL = """
def migrate(migration):
    migration.include_address("treasury", migration.get_address("multicall"))
"""

FAILING = """
def migrate(migration):
    raise RuntimeError("nope")
"""


@pytest.fixture
def scripts(write_migrations):
    return write_migrations({
        "0002-Zap.py": DEPLOY_ZAP,
        "0001-Multicall.py": DEPLOY_MULTICALL,
        "0010-Treasury.py": INCLUDE_MULTICALL,
        "README.md": "not a migration",
    })


def _names(client):
    return [name for name, _ in client.deployments]


def test_runs_in_timestamp_order(scripts, history_dir, deploy_args, client):
    runner = MigrationRunner(scripts, history_dir)

    runner.run(deploy_args)

    assert _names(client) == ["Multicall", "BeefyZapRouter"]
    assert runner.gas == 0


def test_start_timestamp_is_inclusive(scripts, history_dir, deploy_args, client):
    MigrationRunner(scripts, history_dir).run(deploy_args, start_timestamp="0002", end_timestamp="0002")

    assert _names(client) == ["BeefyZapRouter"]


def test_single_migration(scripts, history_dir, deploy_args, client):
    MigrationRunner(scripts, history_dir).run(deploy_args, start_timestamp="0001", continue_running=False)

    assert _names(client) == ["Multicall"]


def test_end_timestamp_zero_runs_everything(scripts, history_dir, deploy_args, client, read_manifest):
    MigrationRunner(scripts, history_dir).run(deploy_args, end_timestamp="0")

    assert read_manifest("0010")["addresses"] == {"treasury": read_manifest("0001")["addresses"]["multicall"]}


def test_resumes_after_latest_manifest(scripts, history_dir, deploy_args, client):
    runner = MigrationRunner(scripts, history_dir)
    runner.run(deploy_args, end_timestamp="0001")

    runner.run(deploy_args)

    assert _names(client) == ["Multicall", "BeefyZapRouter"]


def test_failure_names_the_migration(write_migrations, history_dir, deploy_args):
    scripts = write_migrations({"0001-Multicall.py": DEPLOY_MULTICALL, "0003-Broken.py": FAILING})

    with pytest.raises(MigrationError) as e:
        MigrationRunner(scripts, history_dir).run(deploy_args)

    assert e.value.failure_timestamp == "0003"
    assert "0003" in str(e.value)
    assert "nope" in str(e.value)


def test_missing_migrations_directory(tmp_path, history_dir, deploy_args):
    with pytest.raises(FileNotFoundError):
        MigrationRunner(str(tmp_path / "nowhere"), history_dir).run(deploy_args)


def test_start_timestamp_needs_earlier_dependencies(scripts, history_dir, deploy_args, client):
    with pytest.raises(MigrationError) as e:
        MigrationRunner(scripts, history_dir).run(deploy_args, start_timestamp="0002")

    # 0002 ran, 0010 stopped on the multicall it never deployed
    assert _names(client) == ["BeefyZapRouter"]
    assert e.value.failure_timestamp == "0010"
