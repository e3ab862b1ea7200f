"""
server_maintenance

Guarded apt maintenance and PHP-FPM service management for CloudPanel-style
Debian/Ubuntu servers.
"""

APP_NAME: str = "Server Maintenance"
VERSION: str = "1.0.0"

__version__ = VERSION
