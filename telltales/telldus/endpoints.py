"""
Telldus Live API endpoint definitions.

Documentation: https://pa-api.telldus.com/explore
"""

# OAuth 1.0a legs
OAUTH_REQUEST_TOKEN = "/oauth/requestToken"
OAUTH_AUTHORIZE = "/oauth/authorize"
OAUTH_ACCESS_TOKEN = "/oauth/accessToken"

# User
USER_PROFILE = "/json/user/profile"

# Resources
CLIENTS_LIST = "/json/clients/list"
DEVICES_LIST = "/json/devices/list"
SENSORS_LIST = "/json/sensors/list"
