"""
Auth package for the tinylink FastAPI app.

Provides the shared-secret bearer check that guards the expiry sweep
endpoint invoked by external schedulers.
"""
