"""
Unit tests for contract models.
"""

import pytest
from pydantic import ValidationError

from brickgate.models import AuthzMode, ContractCheck, PrivilegeType, SecurableIdSource, SecurableKind
from tests.fixtures import make_contract_entry


class TestContractCheck:
    """Tests for ContractCheck."""

    def test_rejects_invalid_combination(self) -> None:
        """Declared checks must be meaningful."""
        with pytest.raises(ValidationError):
            ContractCheck(
                securable_type=SecurableKind.VOLUME,
                privilege=PrivilegeType.CREATE_TABLE,
                securable_id_source=SecurableIdSource.RUNTIME_RESOLVED_OBJECT_ID,
            )

    @pytest.mark.parametrize("source", [SecurableIdSource.CATALOG_NAME_PARAM, SecurableIdSource.CATALOG_SENTINEL])
    def test_catalog_scoped_source_on_table(self, source: SecurableIdSource) -> None:
        """Only catalog checks may take their id from a request value or the sentinel."""
        with pytest.raises(ValidationError, match="runtime_resolved_object_id"):
            ContractCheck(securable_type=SecurableKind.TABLE, privilege=PrivilegeType.MODIFY, securable_id_source=source)

    def test_describe(self) -> None:
        """describe() is kind/privilege/source."""
        check = ContractCheck(
            securable_type="catalog", privilege="CREATE_SCHEMA", securable_id_source="catalog_name_param"
        )
        assert check.describe() == "catalog/CREATE_SCHEMA/catalog_name_param"


class TestContractEntry:
    """Tests for ContractEntry."""

    def test_handler_parts(self) -> None:
        """handler splits into module, class and method."""
        entry = make_contract_entry()
        assert entry.handler_module == "brickgate.services.catalog"
        assert entry.handler_class == "CatalogService"
        assert entry.handler_method == "update_table"

    def test_admin_only_rejects_checks(self) -> None:
        """admin_only entries declare no privilege checks."""
        with pytest.raises(ValidationError):
            make_contract_entry(mode=AuthzMode.ADMIN_ONLY)

    def test_privilege_requires_checks(self) -> None:
        """privilege entries need at least one check."""
        with pytest.raises(ValidationError):
            make_contract_entry(checks=[])

    def test_operation_id_format(self) -> None:
        """Operation ids are lowerCamelCase."""
        with pytest.raises(ValidationError):
            make_contract_entry(operation_id="Update-Table")

    def test_to_records(self) -> None:
        """to_records produces the flat exchange format."""
        assert make_contract_entry().to_records() == [{
            "operationID": "updateTable",
            "mode": "privilege",
            "securableType": "table",
            "privilege": "MODIFY",
            "securableIDSource": "runtime_resolved_object_id",
        }]

    def test_admin_only_record(self) -> None:
        """admin_only entries serialize with empty securable fields."""
        entry = make_contract_entry(
            operation_id="createGrant",
            handler="brickgate.services.grants:GrantService.grant",
            mode=AuthzMode.ADMIN_ONLY,
            checks=[],
        )
        assert entry.to_records() == [{
            "operationID": "createGrant",
            "mode": "admin_only",
            "securableType": None,
            "privilege": None,
            "securableIDSource": None,
        }]
