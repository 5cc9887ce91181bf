# =============================================================================
# app/routers/ - API Route Handlers
# =============================================================================
# Each module defines an APIRouter for a specific feature:
# - health.py: Health checks
# - user_assets.py: User asset create/update/delete/download
# - images.py: Project/profile/asset poster images
# - proxy.py: Pass-through to the Supabase REST and auth APIs
# =============================================================================

from . import health
from . import user_assets
from . import images
from . import proxy

__all__ = [
    "health",
    "user_assets",
    "images",
    "proxy",
]
