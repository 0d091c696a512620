"""
Unit tests for the audit coverage rule.
"""

from brickgate.contracts import check_audit_coverage

SAMPLES = "tests.fixtures.audit_samples"


def method_ids(violations) -> list:
    return [v.method_id.split(":", 1)[1] for v in violations]


class TestAuditCoverage:
    """Tests for check_audit_coverage()."""

    def test_shipped_services(self) -> None:
        """Every mutating service method is audited or excepted."""
        assert check_audit_coverage() == []

    def test_unaudited_mutations(self) -> None:
        """Unaudited mutating methods on services and managers are reported."""
        violations = check_audit_coverage(SAMPLES, exceptions={})
        assert method_ids(violations) == [
            "SampleService.delete_schema",
            "SampleService.attach_all",
            "SampleManager.revoke",
        ]

    def test_exception_allows_method(self) -> None:
        """Listed exceptions are accepted."""
        violations = check_audit_coverage(SAMPLES, exceptions={f"{SAMPLES}:SampleService.attach_all": "startup"})
        assert "SampleService.attach_all" not in method_ids(violations)

    def test_exception_on_audited_method(self) -> None:
        """Excepting an already audited method is an error."""
        violations = check_audit_coverage(SAMPLES, exceptions={f"{SAMPLES}:SampleService.update_table": "x"})
        assert "SampleService.update_table" in method_ids(violations)

    def test_stale_exception(self) -> None:
        """Exceptions for methods that no longer exist are reported."""
        violations = check_audit_coverage(SAMPLES, exceptions={f"{SAMPLES}:SampleService.gone": "removed"})
        stale = [v for v in violations if v.method_id.endswith("SampleService.gone")]
        assert len(stale) == 1
        assert "stale" in stale[0].message

    def test_exceptions_outside_package_ignored(self) -> None:
        """Exceptions for other packages are not stale here."""
        violations = check_audit_coverage(SAMPLES)
        assert all(v.method_id.startswith(SAMPLES) for v in violations)

    def test_non_context_methods_skipped(self) -> None:
        """Methods without a request context and non-service classes are out of scope."""
        ids = method_ids(check_audit_coverage(SAMPLES, exceptions={}))
        assert "SampleService.set_option" not in ids
        assert "SampleHelper.delete_everything" not in ids
