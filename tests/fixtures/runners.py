"""Process runner stand-ins for session tests."""

from pathlib import Path

from steampipe_publisher.models import RunResult


class StubRunner:
    """ProcessRunner stand-in that replays canned steamcmd output."""

    def __init__(self, *outputs: str, exit_code: int = 0):
        self.outputs = list(outputs)
        self.exit_code = exit_code
        self.calls: list[tuple[Path, list[str], Path | None]] = []

    async def run(self, executable, args, cwd=None, on_output_line=None):
        self.calls.append((executable, list(args), cwd))
        output = self.outputs.pop(0) if self.outputs else ""
        lines = output.splitlines()
        if on_output_line is not None:
            for line in lines:
                on_output_line(line)
        return RunResult(exit_code=self.exit_code, output="\n".join(lines))
