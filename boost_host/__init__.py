# boost_host/__init__.py
# Host-side client for a LEGO Boost Move Hub over BLE.
# Use explicit imports to avoid circular dependencies:
#   from boost_host.core.client import HubClient
#   from boost_host.core.hub_runtime import build_runtime

__version__ = "0.1.0"
