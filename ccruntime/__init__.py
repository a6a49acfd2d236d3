# ccruntime/__init__.py
"""cc-runtime: environment report for the Clear Containers runtime."""

__version__ = "3.0.0"

# Filled in by the release build; left as "unknown" for source checkouts.
__commit__ = "unknown"

# Version of the OCI runtime specification the runtime implements.
OCI_SPEC_VERSION = "1.0.0"
