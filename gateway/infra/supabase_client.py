from typing import Optional
from supabase import create_client, Client, ClientOptions
from gateway.config import SUPABASE_URL, SUPABASE_SERVICE_KEY, SUPABASE_TIMEOUT_SECONDS

_service_supabase: Optional[Client] = None

def get_service_supabase() -> Client:
    """
    Client service-role (bypass RLS): le webhook agit pour le compte du processeur,
    sans session utilisateur. Chaque appel PostgREST est borné par SUPABASE_TIMEOUT_SECONDS.
    """
    global _service_supabase
    if not SUPABASE_URL or not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_URL/SUPABASE_SERVICE_KEY manquants pour get_service_supabase()")
    if _service_supabase is None:
        options = ClientOptions(postgrest_client_timeout=SUPABASE_TIMEOUT_SECONDS)
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY, options=options)
    return _service_supabase
