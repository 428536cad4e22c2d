from supabase import Client, create_client

from recy.config import get_settings
from recy.errors import StorageError
from recy.messages import Message

_client: Client | None = None


def get_supabase() -> Client:
    global _client
    if _client is not None:
        return _client
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise StorageError(Message.STORAGE_UNAVAILABLE, "Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
    _client = create_client(settings.supabase_url, settings.supabase_service_role_key)
    return _client
