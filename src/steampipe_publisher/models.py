"""Pydantic data models for the steamcmd build/upload orchestration."""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class PublisherError(Exception):
    """Base exception for build/upload orchestration failures."""

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.context = context or {}


class LaunchFailure(PublisherError):
    """Raised when steamcmd exists but the process could not be spawned."""

    def __init__(self, message: str, os_error: OSError | None = None, context: dict = None):
        super().__init__(message, context)
        self.os_error = os_error


class ManifestValidationError(PublisherError, ValueError):
    """Raised when a build description cannot produce a manifest."""

    pass


class SessionBusyError(PublisherError):
    """Raised when a login or upload is requested while another is in flight."""

    pass


class SessionState(Enum):
    LOGGED_OUT = "logged_out"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"


class Session(BaseModel):
    """Authentication state owned by a SessionController."""

    model_config = {"frozen": True}

    authenticated: bool = False
    username: str | None = None


class DepotSpec(BaseModel):
    """One content mapping inside a build."""

    model_config = {"coerce_numbers_to_str": True}

    id: str
    source_content_path: str = ""
    include_pattern: str = "*"  # what to take from the content root
    destination_path: str = "."  # where it lands inside the depot
    recursive: bool = True
    exclude_pattern: str = ""  # e.g. "*.pdb"


class BuildSpec(BaseModel):
    """Description of an app build upload.

    Validation of app_id and depots is deferred to manifest generation so a
    form can be constructed incrementally.
    """

    model_config = {"coerce_numbers_to_str": True}

    app_id: str = ""
    description: str = ""
    content_root: str = ""
    branch: str = ""  # empty = do not set live
    preview_only: bool = False
    depots: list[DepotSpec] = Field(default_factory=list)


class RunResult(BaseModel):
    """Exit code and captured output of one steamcmd invocation."""

    model_config = {"frozen": True}

    exit_code: int
    output: str = ""


# Login outcomes


class LoginSuccess(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["success"] = "success"
    username: str


class InvalidGuardCode(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["invalid_guard_code"] = "invalid_guard_code"


class InvalidCredentials(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["invalid_credentials"] = "invalid_credentials"


class RateLimited(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["rate_limited"] = "rate_limited"


class LoginUnrecognized(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["unrecognized"] = "unrecognized"
    raw_output: str = ""


LoginOutcome = Annotated[
    Union[LoginSuccess, InvalidGuardCode, InvalidCredentials, RateLimited, LoginUnrecognized],
    Field(discriminator="kind"),
]


# Upload outcomes


class UploadSuccess(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["success"] = "success"


class ToolError(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["tool_error"] = "tool_error"
    raw_output: str = ""


class UploadUnrecognized(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["unrecognized"] = "unrecognized"
    raw_output: str = ""


UploadOutcome = Annotated[
    Union[UploadSuccess, ToolError, UploadUnrecognized],
    Field(discriminator="kind"),
]


class ReportedError(BaseModel):
    """A failure reported to the log/status sinks instead of a classified outcome."""

    model_config = {"frozen": True}

    kind: Literal[
        "invalid_input",
        "not_logged_in",
        "tool_not_found",
        "launch_failure",
        "validation_error",
        "io_error",
    ]
    message: str
