# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Supabase client factory (service role / per user)
# - key_codec.py: Storage key derivation and URL <-> key mapping
# - utils.py: Shared utilities (path normalisation)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.key_codec import KeyCodec, derive_key
from lib.utils import fix_path, fix_user_asset_path

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Keys
    "KeyCodec",
    "derive_key",
    # Utils
    "fix_path",
    "fix_user_asset_path",
]
