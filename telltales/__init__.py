"""
telltales - command-line client for Telldus Live.

Authentication core: credential persistence, the OAuth 1.0a handshake and
a rate-limited, signed session for every other command.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("telltales")
except PackageNotFoundError:
    # Package not installed (development mode)
    __version__ = "0.0.0-dev"
