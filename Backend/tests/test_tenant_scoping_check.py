"""The tenant scoping lint script flags unscoped tenant queries."""

import importlib.util
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "check_tenant_scoping.py"


@pytest.fixture(scope="module")
def checker():
    spec = importlib.util.spec_from_file_location("check_tenant_scoping", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_package_is_clean(checker):
    findings = checker.scan_directory(checker.SCAN_ROOT)
    assert checker.critical_count(findings) == 0, "\n".join(str(f) for f in findings)


def test_flags_unscoped_queries(checker, tmp_path):
    (tmp_path / "leaky.py").write_text(
        "BUSINESS_ID = 7\n"
        "stmt = select(Appointment).where(Appointment.status == 'Pending')\n"
    )

    findings = checker.scan_directory(tmp_path)

    assert {f.severity for f in findings} == {"CRITICAL", "HIGH"}
    assert checker.main(["--path", str(tmp_path)]) == 1


def test_accepts_scoped_queries(checker, tmp_path):
    (tmp_path / "scoped.py").write_text(
        "stmt = select(Service).where(\n"
        "    Service.business_id == business_id,\n"
        ")\n"
    )

    assert checker.scan_directory(tmp_path) == []
    assert checker.main(["--path", str(tmp_path)]) == 0
