"""
Policy persistence service.

Writes LegalFooter policy rows to the legalfooter_policies table in Supabase
and reads the inserted row back in the same call (PostgREST returns the
representation by default).
"""

import logging
from typing import Optional

from pydantic import ValidationError
from supabase import Client

from app.db import supabase_admin
from app.models.policy import PolicyCreate, PolicyRecord

logger = logging.getLogger(__name__)

POLICIES_TABLE = "legalfooter_policies"


class PersistenceError(Exception):
    """The policy row could not be written."""


class PolicyStore:
    """Insert-and-return access to legalfooter_policies."""

    def __init__(self, client: Optional[Client]):
        self._client = client

    def insert_policy(self, policy: PolicyCreate) -> PolicyRecord:
        """
        Insert one policy row and return it with its generated id.

        No uniqueness check is made here; any constraint on policy_id must
        live in the database.

        Raises:
            PersistenceError: client not configured, the insert failed, or no
                usable row came back.
        """
        if self._client is None:
            raise PersistenceError(
                "SUPABASE_SERVICE_ROLE_KEY is required for policy writes"
            )

        try:
            result = self._client.table(POLICIES_TABLE).insert(policy.model_dump()).execute()
        except Exception as e:
            raise PersistenceError(f"{POLICIES_TABLE} insert failed: {e}") from e

        if not result.data:
            raise PersistenceError(f"{POLICIES_TABLE} insert returned no data")

        try:
            return PolicyRecord(**result.data[0])
        except ValidationError as e:
            raise PersistenceError(f"{POLICIES_TABLE} insert returned an unreadable row: {e}") from e


_policy_store = PolicyStore(supabase_admin)


def get_policy_store() -> PolicyStore:
    """FastAPI dependency returning the process-wide PolicyStore."""
    return _policy_store
