"""
Unit tests for the Supabase policy store.
"""

import os
import pytest
from unittest.mock import MagicMock, Mock

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")

from app.models.policy import PolicyCreate, PolicyRecord
from app.services.policy_store import PersistenceError, PolicyStore


def _policy() -> PolicyCreate:
    return PolicyCreate(
        email="a@b.com",
        domain="example.com",
        stripe_customer_id="cus_1",
        policy_id="cs_1",
    )


class TestInsertPolicy:

    def test_inserts_row_and_returns_record(self):
        mock_sb = MagicMock()
        mock_sb.table.return_value.insert.return_value.execute.return_value = Mock(
            data=[
                {
                    "id": "7f1c9d2e-0000-0000-0000-000000000000",
                    "email": "a@b.com",
                    "domain": "example.com",
                    "stripe_customer_id": "cus_1",
                    "policy_id": "cs_1",
                    "created_at": "2026-01-01T00:00:00+00:00",
                }
            ]
        )

        record = PolicyStore(mock_sb).insert_policy(_policy())

        assert isinstance(record, PolicyRecord)
        assert record.id == "7f1c9d2e-0000-0000-0000-000000000000"
        assert record.domain == "example.com"
        mock_sb.table.assert_called_once_with("legalfooter_policies")
        mock_sb.table.return_value.insert.assert_called_once_with(
            {
                "email": "a@b.com",
                "domain": "example.com",
                "stripe_customer_id": "cus_1",
                "policy_id": "cs_1",
            }
        )

    def test_integer_ids_are_accepted(self):
        mock_sb = MagicMock()
        mock_sb.table.return_value.insert.return_value.execute.return_value = Mock(
            data=[{"id": 101, "email": None, "domain": None}]
        )

        record = PolicyStore(mock_sb).insert_policy(PolicyCreate())

        assert record.id == 101
        assert record.email is None

    def test_client_exception_raises_persistence_error(self):
        mock_sb = MagicMock()
        mock_sb.table.return_value.insert.return_value.execute.side_effect = Exception(
            "duplicate key value violates unique constraint"
        )

        with pytest.raises(PersistenceError) as exc_info:
            PolicyStore(mock_sb).insert_policy(_policy())

        assert "duplicate key" in str(exc_info.value)

    def test_empty_result_raises_persistence_error(self):
        mock_sb = MagicMock()
        mock_sb.table.return_value.insert.return_value.execute.return_value = Mock(data=[])

        with pytest.raises(PersistenceError):
            PolicyStore(mock_sb).insert_policy(_policy())

    def test_row_without_id_raises_persistence_error(self):
        mock_sb = MagicMock()
        mock_sb.table.return_value.insert.return_value.execute.return_value = Mock(
            data=[{"id": None, "email": "a@b.com", "domain": "example.com"}]
        )

        with pytest.raises(PersistenceError) as exc_info:
            PolicyStore(mock_sb).insert_policy(_policy())

        assert "unreadable row" in str(exc_info.value)
        assert exc_info.value.__cause__ is not None

    def test_unconfigured_client_raises_persistence_error(self):
        with pytest.raises(PersistenceError) as exc_info:
            PolicyStore(None).insert_policy(_policy())

        assert "SUPABASE_SERVICE_ROLE_KEY" in str(exc_info.value)
