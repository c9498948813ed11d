"""Authentication helpers for the Gmail API."""

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build, Resource

from spamslam.constants import CONFIG_DIR, CREDENTIALS_PATH, SCOPES, TOKEN_PATH


def get_credentials(interactive: bool = True) -> Credentials:
    """Return OAuth credentials for the Gmail and userinfo scopes.

    Loads the cached token from TOKEN_PATH if available.  When the token is
    expired it is silently refreshed.  If no usable token exists and
    ``interactive`` is set, an OAuth browser flow is launched (requires
    credentials.json at CREDENTIALS_PATH).
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    creds: Credentials | None = None

    if TOKEN_PATH.exists():
        creds = Credentials.from_authorized_user_file(str(TOKEN_PATH), SCOPES)

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
    elif not creds or not creds.valid:
        if not interactive:
            raise FileNotFoundError(f"No saved Gmail token at {TOKEN_PATH}. Run 'spamslam auth' first.")
        if not CREDENTIALS_PATH.exists():
            raise FileNotFoundError(
                f"Credentials file not found at {CREDENTIALS_PATH}.\n"
                "Download your OAuth client credentials from the Google Cloud Console "
                "and save them as:\n"
                f"  {CREDENTIALS_PATH}"
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(CREDENTIALS_PATH), SCOPES)
        creds = flow.run_local_server(port=0)

    TOKEN_PATH.write_text(creds.to_json())

    return creds


def build_gmail_service(creds: Credentials) -> Resource:
    return build("gmail", "v1", credentials=creds)


def forget_token() -> None:
    """Remove the cached OAuth token so the next sign-in starts fresh."""
    TOKEN_PATH.unlink(missing_ok=True)
