"""Outcome classification for steamcmd output.

steamcmd has no machine-readable output mode and its phrasing changes between
versions, so outcomes are keyed on known substrings. Failure phrases are
checked before success phrases because a success-looking line such as
"Unloading Steam API" is printed on failed logins too.
"""

from .models import (
    InvalidCredentials,
    InvalidGuardCode,
    LoginOutcome,
    LoginSuccess,
    LoginUnrecognized,
    RateLimited,
    ToolError,
    UploadOutcome,
    UploadSuccess,
    UploadUnrecognized,
)

GUARD_CODE_PHRASES = (
    "Two-factor code mismatch",
    "Invalid Steam Guard",
    "Invalid authenticator code",
)
INVALID_CREDENTIAL_PHRASES = ("Invalid Password", "FAILED login")
RATE_LIMIT_PHRASES = ("Too many login failures",)
# "Logged in OK" only shows up when cached credentials are reused; a fresh
# login just unloads the API and exits.
LOGIN_SUCCESS_PHRASES = ("Logged in OK", "Login Successful", "Unloading Steam API")

UPLOAD_SUCCESS_PHRASES = ("Building depot", "Uploading content")
UPLOAD_ERROR_PHRASES = ("ERROR",)


def _contains_any(output: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in output for phrase in phrases)


def classify_login(output: str, username: str = "") -> LoginOutcome:
    """Map the captured output of a login run to a LoginOutcome."""
    output = output or ""

    if _contains_any(output, GUARD_CODE_PHRASES):
        return InvalidGuardCode()
    if _contains_any(output, INVALID_CREDENTIAL_PHRASES):
        return InvalidCredentials()
    if _contains_any(output, RATE_LIMIT_PHRASES):
        return RateLimited()
    if _contains_any(output, LOGIN_SUCCESS_PHRASES):
        return LoginSuccess(username=username)
    return LoginUnrecognized(raw_output=output)


def classify_upload(output: str) -> UploadOutcome:
    """Map the captured output of a run_app_build to an UploadOutcome."""
    output = output or ""

    if _contains_any(output, UPLOAD_SUCCESS_PHRASES):
        return UploadSuccess()
    if _contains_any(output, UPLOAD_ERROR_PHRASES):
        return ToolError(raw_output=output)
    return UploadUnrecognized(raw_output=output)
