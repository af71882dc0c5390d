"""
Shared fixtures for the MicroTools test suite.

External executables are replaced by ``FakeInvoker``, which records every
call and writes the file the real tool would have produced.
"""

from io import BytesIO
from pathlib import Path
from urllib.parse import unquote, urlparse

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from microtools.api.deps import get_temp_storage, get_tool_invoker
from microtools.config import Settings, get_settings
from microtools.exceptions import ErrorTypes
from microtools.main import app
from microtools.models.artifacts import ToolFailure, ToolSuccess
from microtools.services.invoker import Tool
from microtools.utils.fs import TempStorage


class FakeInvoker:
    """Stand-in for ToolInvoker that never spawns a process."""

    def __init__(self, payload: bytes = b"fake tool output"):
        self.payload = payload
        self.calls: list[tuple[Tool, list[str]]] = []
        self.fail = False
        self.produce = True
        self.leave_partial = False

    async def invoke(self, tool: Tool, args: list[str]):
        self.calls.append((tool, list(args)))
        if tool is Tool.SOFFICE:
            self.profile_for(args).mkdir(parents=True, exist_ok=True)
            (self.profile_for(args) / "registrymodifications.xcu").write_text("<items/>")
        if self.fail:
            if self.leave_partial:
                partial = self.output_for(tool, args)
                partial.with_name(partial.name + ".part").write_bytes(self.payload[:4])
            return ToolFailure(diagnostic="tool exploded", error_type=ErrorTypes.TOOL_FAILED, returncode=1)
        if self.produce:
            self.output_for(tool, args).write_bytes(self.payload)
        return ToolSuccess(stdout="", stderr="")

    @staticmethod
    def profile_for(args: list[str]) -> Path:
        """The user profile directory LibreOffice was pointed at."""
        flag = next(arg for arg in args if arg.startswith("-env:UserInstallation="))
        return Path(unquote(urlparse(flag.split("=", 1)[1]).path))

    @staticmethod
    def output_for(tool: Tool, args: list[str]) -> Path:
        """Where the real tool would write, derived from its arguments."""
        if tool is Tool.GHOSTSCRIPT:
            flag = next(arg for arg in args if arg.startswith("-sOutputFile="))
            return Path(flag.split("=", 1)[1])
        if tool is Tool.FFMPEG:
            return Path(args[-1])
        if tool is Tool.SOFFICE:
            outdir = Path(args[args.index("--outdir") + 1])
            target = args[args.index("--convert-to") + 1]
            return outdir / f"{Path(args[-1]).stem}.{target}"
        return Path(args[args.index("-o") + 1])


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a per-test temp directory with test credentials."""
    return Settings(
        TMP_DIR=str(tmp_path / "work"),
        MAX_FILE_SIZE=5 * 1024 * 1024,
        REMOVE_BG_KEY="bg-test-key",
        RAZORPAY_KEY_ID="rzp_test_key",
        RAZORPAY_KEY_SECRET="test_secret",
    )


@pytest.fixture
def storage(settings):
    """Temp storage under the test's temp directory."""
    return TempStorage(settings.TMP_DIR)


@pytest.fixture
def invoker():
    """Fake tool invoker shared by the app and the test."""
    return FakeInvoker()


@pytest.fixture
def client(settings, storage, invoker):
    """Test client with settings, storage and tools overridden."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_temp_storage] = lambda: storage
    app.dependency_overrides[get_tool_invoker] = lambda: invoker
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def leftover_files(storage):
    """Callable listing whatever is still in the temp directory."""
    return lambda: sorted(path.name for path in storage.root.iterdir())


@pytest.fixture
def image_bytes():
    """Factory for encoded test images."""

    def _make(format_name: str = "PNG", size: tuple[int, int] = (100, 80), mode: str = "RGB") -> bytes:
        color = (200, 30, 30, 255) if mode in ("RGBA", "CMYK") else (200, 30, 30)
        image = Image.new(mode, size, color)
        buffer = BytesIO()
        image.save(buffer, format=format_name)
        return buffer.getvalue()

    return _make
