"""Record store adapter over the Supabase (PostgREST) client"""
from typing import Any, Callable, Dict, Optional

from postgrest.exceptions import APIError

from config.database import get_supabase
from utils.logger import log_debug

# Postgres SQLSTATE codes surfaced by PostgREST
DUPLICATE_KEY_CODE = '23505'  # unique_violation
UNDEFINED_TABLE_CODE = '42P01'  # undefined_table


class StoreError(Exception):
    """Structured error returned by the record store"""

    def __init__(self, code: str, message: str):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message

    @property
    def is_duplicate(self) -> bool:
        return self.code == DUPLICATE_KEY_CODE

    @property
    def is_missing_collection(self) -> bool:
        return self.code == UNDEFINED_TABLE_CODE


class TransportError(Exception):
    """The store could not be reached or never produced a structured response"""


class RecordStore:
    """Inserts records into named Supabase tables"""

    def __init__(self, client_factory: Callable[[], Any] = get_supabase):
        self._client_factory = client_factory

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert one record into `collection` and return the inserted row.

        Raises StoreError for PostgREST errors and TransportError for
        everything else, including a missing or misconfigured client.
        """
        try:
            supabase = self._client_factory()
            if not supabase:
                raise TransportError("Database connection not available")

            result = supabase.table(collection).insert(record).execute()
        except APIError as e:
            raise StoreError(e.code or '', e.message or str(e)) from e
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(str(e)) from e

        rows = getattr(result, 'data', None) or []
        log_debug(f"Inserted {len(rows)} row(s) into {collection}")
        return rows[0] if rows else {}


def describe_store_error(error: Optional[StoreError]) -> str:
    """Map a store error to the message shown under the form"""
    if error is None:
        return ''
    if error.is_duplicate:
        return 'This email is already on the waitlist!'
    if error.is_missing_collection:
        return 'Database table not found. Please check your setup.'
    return f"Database error: {error.message}"
