"""
User Service
Stores signed-in identities in the Supabase ``users`` table
"""
import httpx

from nikovplan.config.supabase import SimpleSupabaseClient, SupabaseError
from nikovplan.models.user import UserRecord
from nikovplan.services.exceptions import StoreWriteError

USERS_TABLE = "users"


class UserService:
    def __init__(self, client: SimpleSupabaseClient):
        self.client = client

    async def upsert_user(self, record: UserRecord) -> None:
        """Create the user or refresh its profile and last_login"""
        try:
            await self.client.query(USERS_TABLE, "POST", data=record.to_row(), on_conflict="id")
        except (SupabaseError, httpx.HTTPError) as e:
            raise StoreWriteError(f"Could not store user {record.id}") from e
