# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: record schemas and operation results
# - services/: metadata store, object stores and the two write coordinators
#
# Code in this package should NOT import from FastAPI routers.
# This keeps the logic testable with in-memory stores.
# =============================================================================
