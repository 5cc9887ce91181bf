# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the AssetGate API:
# - test_models.py: Unit tests for the asset and result models
# - test_key_codec.py: Storage key derivation and path helpers
# - test_stores.py: Metadata store and object store backends (mocked clients)
# - test_asset_service.py: User asset write protocol and rollbacks
# - test_linked_asset_service.py: Poster/avatar write protocol
# - test_routes.py: HTTP endpoints, auth and the Supabase proxy
#
# Run tests with: pytest
# =============================================================================
