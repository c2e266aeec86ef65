from __future__ import annotations

import builtins
import os
import sys
import importlib.abc
import tempfile
import traceback
from pathlib import Path

import pytest


def _hardware_opted_in() -> bool:
    return os.environ.get("OPENRGB_FADE_HW_TESTS") == "1"


# Safety default: during pytest, avoid touching the user's real config and
# keymaps. This also keeps a running openrgb-fade from seeing test writes.
if not _hardware_opted_in():
    os.environ.setdefault(
        "OPENRGB_FADE_CONFIG_DIR",
        tempfile.mkdtemp(prefix="openrgb-fade-test-config-"),
    )
    os.environ.pop("OPENRGB_FADE_CONFIG_PATH", None)


# Safety default: running pytest should never grab real keyboards unless
# explicitly opted in.
if not _hardware_opted_in():
    os.environ.setdefault("OPENRGB_FADE_DISABLE_EVDEV", "1")


def _install_tripwire() -> None:
    """Hard-fail on unexpected access to real input devices during pytest.

    Only enabled when OPENRGB_FADE_TEST_HARDWARE_TRIPWIRE=1 and hardware is
    NOT opted in. Tests that inject fakes via sys.modules are unaffected.
    """

    if os.environ.get("OPENRGB_FADE_TEST_HARDWARE_TRIPWIRE") != "1":
        return
    if _hardware_opted_in():
        return

    blocked_prefixes = ("evdev", "openrgb")

    class _BlockImportsFinder(importlib.abc.MetaPathFinder):
        def find_spec(self, fullname: str, path, target=None):  # type: ignore[override]
            if fullname in sys.modules:
                return None
            if any(fullname == prefix or fullname.startswith(f"{prefix}.") for prefix in blocked_prefixes):
                raise RuntimeError(
                    "Tripwire: attempted to import a hardware/SDK module during pytest: "
                    f"{fullname}\n\n" + "".join(traceback.format_stack(limit=50))
                )
            return None

    sys.meta_path.insert(0, _BlockImportsFinder())

    _orig_open = builtins.open

    def _tripwire_open(file, mode="r", *args, **kwargs):  # type: ignore[override]
        p = os.fspath(file) if isinstance(file, (str, os.PathLike)) else str(file)
        if isinstance(p, str) and p.startswith("/dev/input/"):
            raise RuntimeError(
                f"Tripwire: attempted open of input device node during pytest: {p}\n\n"
                + "".join(traceback.format_stack(limit=50))
            )
        return _orig_open(file, mode, *args, **kwargs)

    builtins.open = _tripwire_open  # type: ignore[assignment]


_install_tripwire()


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if _hardware_opted_in():
        return

    skip_marker = pytest.mark.skip(reason="Hardware test; set OPENRGB_FADE_HW_TESTS=1 to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_marker)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "hardware: needs a running OpenRGB server and a real keyboard")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> float:
        self.now += float(dt)
        return self.now


class FakeLightingClient:
    """Records every LED write; can be told to fail."""

    def __init__(self, led_count: int = 5, *, name: str = "Fake Keyboard", vendor: str = "ACME"):
        from src.core.backends.base import DeviceInfo

        self.info = DeviceInfo(
            device_id="fake:0",
            name=name,
            vendor=vendor,
            location="fake:0",
            led_count=int(led_count),
        )
        self.writes: list[tuple[int, tuple[int, int, int]]] = []
        self.turn_off_calls = 0
        self.disconnected = False
        self.fail_with: BaseException | None = None

    def get_device_info(self):
        return self.info

    def set_color(self, led_index: int, rgb) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.writes.append((int(led_index), tuple(rgb)))

    def turn_off(self) -> None:
        self.turn_off_calls += 1

    def disconnect(self) -> None:
        self.disconnected = True

    def writes_for(self, led_index: int) -> list[tuple[int, int, int]]:
        return [rgb for led, rgb in self.writes if led == led_index]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_client() -> FakeLightingClient:
    return FakeLightingClient()


@pytest.fixture
def keymaps_root(tmp_path: Path) -> Path:
    root = tmp_path / "keymaps"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def _reset_log_throttling():
    from src.core.utils.logging_utils import reset_throttling

    reset_throttling()
    yield
