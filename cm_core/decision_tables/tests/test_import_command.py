# cm_core/decision_tables/tests/test_import_command.py
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from cm_core.decision_tables.csv_import import MSG_NO_CASES
from cm_core.decision_tables.models import DecisionTable

pytestmark = pytest.mark.django_db


def _write(tmp_path, content, name="tabela.csv", encoding="utf-8"):
    path = tmp_path / name
    path.write_bytes(content.encode(encoding))
    return path


def test_command_imports_and_sets_default(tmp_path, sample_csv):
    path = _write(tmp_path, sample_csv)
    out = StringIO()

    call_command("import_decision_table", str(path), "--name", "Principal", "--default", stdout=out)

    table = DecisionTable.objects.get()
    assert table.name == "Principal"
    assert table.source_file_name == "tabela.csv"
    assert table.is_default is True
    assert table.entries.count() == 7
    assert "entries=7" in out.getvalue()


def test_command_name_defaults_to_file_stem(tmp_path, sample_csv):
    path = _write(tmp_path, sample_csv, name="verao_2024.csv", encoding="latin-1")

    call_command("import_decision_table", str(path), stdout=StringIO())

    assert DecisionTable.objects.get().name == "verao_2024"


def test_validate_only_does_not_import(tmp_path):
    path = _write(tmp_path, "\n".join([";;Primeiro Grupo", ";;1", ";;Limpeza", ";;", ";;", ";XX;A"]))
    err = StringIO()

    call_command("import_decision_table", str(path), "--validate-only", stdout=StringIO(), stderr=err)

    assert MSG_NO_CASES in err.getvalue()
    assert DecisionTable.objects.count() == 0


def test_strict_refuses_invalid_file(tmp_path):
    path = _write(tmp_path, "\n".join([";;Primeiro Grupo", ";;1", ";;Limpeza", ";;", ";;", ";XX;A"]))

    with pytest.raises(CommandError):
        call_command("import_decision_table", str(path), "--strict", stdout=StringIO(), stderr=StringIO())

    assert DecisionTable.objects.count() == 0


def test_short_file_fails(tmp_path):
    path = _write(tmp_path, "a;b\nc;d")

    with pytest.raises(CommandError):
        call_command("import_decision_table", str(path), stdout=StringIO(), stderr=StringIO())


def test_missing_file(tmp_path):
    with pytest.raises(CommandError):
        call_command("import_decision_table", str(tmp_path / "nope.csv"))
