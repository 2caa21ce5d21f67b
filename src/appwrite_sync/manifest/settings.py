"""Mapping between the remote project document and manifest settings."""

from typing import Any

# Manifest service name -> project document field
SERVICE_FIELDS: dict[str, str] = {
    "account": "serviceStatusForAccount",
    "avatars": "serviceStatusForAvatars",
    "databases": "serviceStatusForDatabases",
    "locale": "serviceStatusForLocale",
    "health": "serviceStatusForHealth",
    "storage": "serviceStatusForStorage",
    "teams": "serviceStatusForTeams",
    "users": "serviceStatusForUsers",
    "sites": "serviceStatusForSites",
    "functions": "serviceStatusForFunctions",
    "graphql": "serviceStatusForGraphql",
    "messaging": "serviceStatusForMessaging",
}

AUTH_METHOD_FIELDS: dict[str, str] = {
    "jwt": "authJWT",
    "phone": "authPhone",
    "invites": "authInvites",
    "anonymous": "authAnonymous",
    "email-otp": "authEmailOtp",
    "magic-url": "authUsersAuthMagicURL",
    "email-password": "authEmailPassword",
}

AUTH_SECURITY_FIELDS: dict[str, str] = {
    "duration": "authDuration",
    "limit": "authLimit",
    "sessionsLimit": "authSessionsLimit",
    "passwordHistory": "authPasswordHistory",
    "passwordDictionary": "authPasswordDictionary",
    "personalDataCheck": "authPersonalDataCheck",
    "sessionAlerts": "authSessionAlerts",
    "mockNumbers": "authMockNumbers",
}


def create_settings_object(project: dict[str, Any]) -> dict[str, Any]:
    """Build the manifest `settings` block from a remote project document."""
    return {
        "services": {name: project.get(src) for name, src in SERVICE_FIELDS.items()},
        "auth": {
            "methods": {name: project.get(src) for name, src in AUTH_METHOD_FIELDS.items()},
            "security": {name: project.get(src) for name, src in AUTH_SECURITY_FIELDS.items()},
        },
    }
