"""steamcmd session control: login, build manifest generation and upload."""

import logging
import shlex
from pathlib import Path

from .classifier import classify_login, classify_upload
from .config import get_search_root
from .models import (
    BuildSpec,
    InvalidCredentials,
    InvalidGuardCode,
    LaunchFailure,
    LoginOutcome,
    LoginSuccess,
    ManifestValidationError,
    RateLimited,
    ReportedError,
    RunResult,
    Session,
    SessionBusyError,
    SessionState,
    ToolError,
    UploadOutcome,
    UploadSuccess,
)
from .tools.locator import ToolLocator
from .tools.manifest import build_upload_manifest, simple_build_spec
from .tools.process import ProcessRunner, strip_ansi
from .utils.dispatcher import CrossThreadDispatcher
from .utils.events import EventChannel

logger = logging.getLogger(__name__)

STATUS_NOT_CONNECTED = "Not connected"
STATUS_TOOL_MISSING = "steamcmd not found"
STATUS_LOGGING_IN = "Logging in..."
STATUS_GENERATING = "Generating manifest..."
STATUS_UPLOADING = "Uploading..."
STATUS_ERROR = "Error"

LOGIN_STATUS = {
    "invalid_guard_code": "Steam Guard error",
    "invalid_credentials": "Invalid username or password",
    "rate_limited": "Too many attempts",
    "unrecognized": "Login failed: unexpected response",
}

TOOL_MISSING_MESSAGE = "steamcmd not found. Set the Steamworks SDK folder in Settings."


def display_command(args: list[str], secrets: tuple[str, ...] = ()) -> str:
    """Human-readable command line with whitespace args quoted and secrets masked."""
    shown = []
    for arg in args:
        if arg and arg in secrets:
            shown.append("********")
        elif any(ch.isspace() for ch in arg):
            shown.append(shlex.quote(arg))
        else:
            shown.append(arg)
    return " ".join(shown)


class SessionController:
    """Owns the steamcmd tool handle and authentication state.

    Login and upload are coroutines; only one may be in flight at a time.
    Log lines and status strings are published on the ``log`` and ``status``
    channels, through the dispatcher when one is given.
    """

    def __init__(
        self,
        locator: ToolLocator | None = None,
        runner: ProcessRunner | None = None,
        dispatcher: CrossThreadDispatcher | None = None,
        search_root: Path | None = None,
        sdk_folder: str = "",
        tool_path: str = "",
        manifest_dir: Path | None = None,
    ):
        self.locator = locator or ToolLocator()
        self.runner = runner or ProcessRunner()
        self.dispatcher = dispatcher
        self.manifest_dir = manifest_dir

        self.log = EventChannel("log", dispatcher)
        self.status = EventChannel("status", dispatcher)

        self._tool_path: Path | None = None
        self._state = SessionState.LOGGED_OUT
        self._username: str | None = None
        self._busy = False

        if sdk_folder or tool_path:
            self.apply_tool_settings(sdk_folder, tool_path)
        if self._tool_path is None:
            self._tool_path = self.locator.locate(search_root or get_search_root())

        if self._tool_path is not None:
            self._log(f"[OK] steamcmd found: {self._tool_path}")
        else:
            self._log("[WARN] steamcmd not found.")
            self._log("[INFO] Set the Steamworks SDK folder in Settings.")

    # Read-only state

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session:
        return Session(authenticated=self.is_logged_in, username=self._username)

    @property
    def is_logged_in(self) -> bool:
        return self._state == SessionState.LOGGED_IN

    @property
    def logged_in_user(self) -> str | None:
        return self._username if self.is_logged_in else None

    @property
    def is_tool_found(self) -> bool:
        return self._tool_path is not None

    @property
    def tool_path(self) -> Path | None:
        return self._tool_path

    # Tool location

    def set_sdk_folder(self, sdk_folder: str) -> bool:
        """Point at a Steamworks SDK folder; keeps the previous tool if none is found."""
        resolved = self.locator.resolve_from_sdk_folder(Path(sdk_folder))
        if resolved is None:
            self._log(f"[ERROR] steamcmd.sh not found in: {sdk_folder}")
            self._log("[INFO]  Expected: <sdk>/tools/ContentBuilder/builder_linux/steamcmd.sh")
            return False

        self._tool_path = resolved
        self._log(f"[OK] steamcmd: {resolved}")
        return True

    def set_tool_path(self, tool_path: str) -> bool:
        """Use a direct path to steamcmd; keeps the previous tool if it does not exist."""
        resolved = self.locator.resolve_from_direct_path(Path(tool_path))
        if resolved is None:
            self._log(f"[ERROR] File not found: {tool_path}")
            return False

        self._tool_path = resolved
        self._log(f"[OK] steamcmd path: {resolved}")
        return True

    def apply_tool_settings(self, sdk_folder: str = "", tool_path: str = "") -> bool:
        """Apply tool settings; the SDK folder wins when both are set."""
        if sdk_folder:
            return self.set_sdk_folder(sdk_folder)
        if tool_path:
            return self.set_tool_path(tool_path)
        return False

    # Operations

    async def login(
        self, username: str, password: str, guard_code: str = ""
    ) -> LoginOutcome | ReportedError:
        """Log in to steamcmd and update the session from the classified output."""
        self._claim()
        try:
            username = (username or "").strip()
            if not username:
                return self._report("invalid_input", "Username is required.", "Login failed")
            if self._tool_path is None:
                return self._report("tool_not_found", TOOL_MISSING_MESSAGE, STATUS_TOOL_MISSING)

            self._state = SessionState.LOGGING_IN
            self._username = None
            self._status(STATUS_LOGGING_IN)

            guard = (guard_code or "").strip()
            args = ["+login", username, password or ""]
            if guard:
                args.append(guard)
            args.append("+quit")

            try:
                result = await self._run(args, secrets=(password, guard))
            except LaunchFailure as e:
                self._state = SessionState.LOGGED_OUT
                return self._report("launch_failure", str(e), "Login failed")

            outcome = classify_login(result.output, username)
            self._apply_login_outcome(outcome)
            return outcome
        finally:
            self._busy = False
            if self._state == SessionState.LOGGING_IN:
                self._state = SessionState.LOGGED_OUT

    def _apply_login_outcome(self, outcome: LoginOutcome) -> None:
        if isinstance(outcome, LoginSuccess):
            self._state = SessionState.LOGGED_IN
            self._username = outcome.username
            self._status(f"✓ {outcome.username}")
            self._log("[OK] Login successful.")
            return

        self._state = SessionState.LOGGED_OUT
        self._username = None
        self._status(LOGIN_STATUS[outcome.kind])
        if isinstance(outcome, InvalidGuardCode):
            self._log("[ERROR] Invalid Steam Guard code.")
        elif isinstance(outcome, InvalidCredentials):
            self._log("[ERROR] Invalid username or password.")
        elif isinstance(outcome, RateLimited):
            self._log("[ERROR] Steam temporarily blocked login. Wait a few minutes.")
        else:
            self._log("[WARN] Unexpected steamcmd response. Check the log above.")

    def logout(self) -> None:
        """Forget the session locally; steamcmd is not contacted."""
        self._state = SessionState.LOGGED_OUT
        self._username = None
        self._status(STATUS_NOT_CONNECTED)
        self._log("[INFO] Logged out.")

    async def upload(self, build: BuildSpec) -> UploadOutcome | ReportedError:
        """Generate the app build manifest and run it through steamcmd."""
        self._claim()
        try:
            if not self.is_logged_in:
                return self._report("not_logged_in", "Please log in first.", STATUS_NOT_CONNECTED)
            if self._tool_path is None:
                return self._report("tool_not_found", TOOL_MISSING_MESSAGE, STATUS_TOOL_MISSING)

            self._status(STATUS_GENERATING)
            try:
                manifest_path = build_upload_manifest(build, self.manifest_dir)
            except ManifestValidationError as e:
                return self._report(
                    "validation_error", f"Manifest generation error: {e}", STATUS_ERROR
                )
            except OSError as e:
                return self._report("io_error", f"Could not write manifest: {e}", STATUS_ERROR)
            self._log(f"[INFO] Manifest created: {manifest_path}")

            self._status(STATUS_UPLOADING)
            args = ["+login", self._username, "+run_app_build", str(manifest_path), "+quit"]
            try:
                result = await self._run(args)
            except LaunchFailure as e:
                return self._report("launch_failure", str(e), STATUS_ERROR)

            outcome = classify_upload(result.output)
            if isinstance(outcome, UploadSuccess):
                self._log("[OK] Upload complete.")
            elif isinstance(outcome, ToolError):
                self._log("[ERROR] steamcmd returned an error. Check the log above.")
            else:
                self._log("[WARN] Upload result unclear. Check the log above.")

            self._status(f"✓ {self._username}")
            return outcome
        finally:
            self._busy = False

    async def upload_simple(
        self,
        app_id: str,
        description: str,
        content_path: str,
        branch: str = "",
        set_live: bool = False,
    ) -> UploadOutcome | ReportedError:
        """Upload a single-depot build; the branch is only set live when requested."""
        build = simple_build_spec(
            app_id, content_path, description, branch if set_live else ""
        )
        return await self.upload(build)

    async def run_command(self, args: list[str]) -> RunResult | ReportedError:
        """Run steamcmd with arbitrary arguments, streaming output to the log."""
        self._claim()
        try:
            if self._tool_path is None:
                return self._report("tool_not_found", TOOL_MISSING_MESSAGE, STATUS_TOOL_MISSING)
            try:
                return await self._run(list(args))
            except LaunchFailure as e:
                return self._report("launch_failure", str(e), STATUS_ERROR)
        finally:
            self._busy = False

    # Helpers

    def _claim(self) -> None:
        if self._busy:
            raise SessionBusyError("A steamcmd login or upload is already running.")
        self._busy = True

    async def _run(self, args: list[str], secrets: tuple[str, ...] = ()) -> RunResult:
        tool = self._tool_path
        logger.debug(f"Running: {tool.name} {display_command(args, secrets)}")

        result = await self.runner.run(tool, args, tool.parent, self._log)
        self._log(f"[INFO] steamcmd exited with code {result.exit_code}")
        return result

    def _report(self, kind: str, message: str, status: str) -> ReportedError:
        self._log(f"[ERROR] {message}")
        self._status(status)
        return ReportedError(kind=kind, message=message)

    def _log(self, message: str) -> None:
        message = strip_ansi(message)
        logger.debug(message)
        self.log.emit(message)

    def _status(self, message: str) -> None:
        logger.info(f"Status: {message}")
        self.status.emit(message)
