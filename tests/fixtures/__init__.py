"""Test fixtures for brickgate."""

from .model_factories import (
    make_audit_record,
    make_catalog_object,
    make_context,
    make_contract_entry,
    make_grant,
    make_principal,
    make_ref,
)

__all__ = [
    "make_audit_record",
    "make_catalog_object",
    "make_context",
    "make_contract_entry",
    "make_grant",
    "make_principal",
    "make_ref",
]
