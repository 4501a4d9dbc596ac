import json

from google.oauth2 import service_account

from sheetrelay.config import Settings
from sheetrelay.exceptions import ConfigurationError

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

REQUIRED_CREDENTIAL_FIELDS = ("type", "project_id", "private_key", "client_email", "token_uri")


def load_credential_info(settings: Settings) -> dict:
    """Read the service-account bundle from GOOGLE_CREDENTIALS or GOOGLE_CREDENTIALS_FILE."""
    if settings.google_credentials:
        source = "GOOGLE_CREDENTIALS"
        raw = settings.google_credentials
    elif settings.google_credentials_file:
        source = str(settings.google_credentials_file)
        if not settings.google_credentials_file.exists():
            raise ConfigurationError(f"Service account file not found at {source}.")
        raw = settings.google_credentials_file.read_text(encoding="utf-8")
    else:
        raise ConfigurationError("Set GOOGLE_CREDENTIALS or GOOGLE_CREDENTIALS_FILE before starting the server.")

    try:
        info = json.loads(raw)
    except ValueError as e:
        raise ConfigurationError(f"Service account credentials in {source} are not valid JSON.") from e
    if not isinstance(info, dict):
        raise ConfigurationError(f"Service account credentials in {source} must be a JSON object.")

    missing = [name for name in REQUIRED_CREDENTIAL_FIELDS if not info.get(name)]
    if missing:
        raise ConfigurationError(f"Service account credentials are missing: {', '.join(missing)}.")
    if info["type"] != "service_account":
        raise ConfigurationError(f"Expected service_account credentials, got type '{info['type']}'.")
    return info


def get_service_account_credentials(settings: Settings) -> service_account.Credentials:
    info = load_credential_info(settings)
    try:
        return service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
    except ValueError as e:
        raise ConfigurationError(f"Could not load service account {info['client_email']}: private key could not be parsed.") from e
