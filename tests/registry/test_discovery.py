import sysconfig
import zipfile
from pathlib import Path

import pytest

from amberdb import Entity, StringField, discover, entity_registry
from amberdb.registry import EntityRegistry, default_scan_roots

MODELS_SOURCE = """
from amberdb import Entity, IntegerField, StringField


class Staff(Entity):
    name = StringField()


class AuditBase(Entity):
    class Meta:
        abstract = True


class NotAnEntity:
    name = "plain"
"""

LEDGER_SOURCE = """
from amberdb import Entity, FloatField


class Ledger(Entity):
    balance = FloatField(default=0.0)
"""

REEXPORT_SOURCE = """
from scanfixture_hr.models import Staff  # noqa: F401
"""


@pytest.fixture
def scan_root(tmp_path, monkeypatch):
    root = tmp_path / "scanroot"
    package = root / "scanfixture_hr"
    (package / "payroll").mkdir(parents=True)
    (package / "__init__.py").write_text("")
    (package / "models.py").write_text(MODELS_SOURCE)
    (package / "reexport.py").write_text(REEXPORT_SOURCE)
    (package / "payroll" / "__init__.py").write_text("")
    (package / "payroll" / "ledger.py").write_text(LEDGER_SOURCE)
    (package / "broken_import.py").write_text("import scanfixture_module_that_does_not_exist\n")
    (package / "syntax_error.py").write_text("class Oops(:\n")
    (package / "cli_script.py").write_text("import sys\n\nsys.exit('usage: cli_script')\n")
    (package / "not-a-module.py").write_text("raise RuntimeError('never imported')\n")
    (package / "__pycache__").mkdir()
    (package / "__pycache__" / "stale.py").write_text("raise RuntimeError('never imported')\n")

    with zipfile.ZipFile(root / "bundle.zip", "w") as archive:
        archive.writestr("zipped_entities.py", LEDGER_SOURCE)

    monkeypatch.syspath_prepend(str(root))
    return root


def _names(models):
    return {model._meta.name for model in models}


def test_discover_returns_exactly_marked_types(scan_root):
    found = discover([scan_root])
    assert _names(found) == {"Staff", "Ledger"}
    assert all(model.__module__.startswith("scanfixture_hr") for model in found)


def test_discover_is_order_independent(scan_root, tmp_path):
    empty_root = tmp_path / "empty"
    empty_root.mkdir()
    first = discover([scan_root, empty_root])
    second = discover([empty_root, scan_root])
    assert first == second


def test_discover_skips_archives_and_missing_roots(scan_root, tmp_path):
    found = discover([scan_root / "bundle.zip", tmp_path / "does-not-exist"])
    assert found == set()


def test_discover_tolerates_unresolvable_candidates(scan_root, caplog):
    caplog.set_level("DEBUG", logger="amberdb.registry")
    found = discover([scan_root])
    assert _names(found) == {"Staff", "Ledger"}
    skipped = [record.message for record in caplog.records if "Skipping" in record.message]
    assert any("broken_import" in message for message in skipped)
    assert any("syntax_error" in message for message in skipped)
    assert any("cli_script" in message and "SystemExit" in message for message in skipped)


def test_default_roots_exclude_interpreter_installation(scan_root):
    roots = set(default_scan_roots())
    assert scan_root.resolve() in roots
    stdlib = Path(sysconfig.get_paths()["stdlib"]).resolve()
    assert stdlib not in roots


def test_entities_self_register_on_definition():
    class RegisteredOnDefinition(Entity):
        label = StringField()

    try:
        assert RegisteredOnDefinition in entity_registry.models()
    finally:
        entity_registry.unregister(RegisteredOnDefinition)
    assert RegisteredOnDefinition not in entity_registry


def test_load_manifest_imports_listed_modules(scan_root):
    registry = EntityRegistry()
    found = registry.load_manifest(["scanfixture_hr.payroll.ledger"])
    assert _names(found) == {"Ledger"}
    with pytest.raises(ImportError):
        registry.load_manifest(["scanfixture_hr.missing"])


def test_registry_rejects_non_persistable_types():
    registry = EntityRegistry()
    with pytest.raises(TypeError):
        registry.register(dict)
