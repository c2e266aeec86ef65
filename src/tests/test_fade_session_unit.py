from __future__ import annotations

import threading
import time

import pytest


class FakeListener:
    """Stands in for the evdev listener; types "a" every few milliseconds."""

    def __init__(self, devices, events, *, clock=time.monotonic, on_failure=None):
        from src.core.input.events import KeyEvent

        self._make = lambda: KeyEvent("a", clock())
        self.events = events
        self._stop = threading.Event()
        self._thread = None

    @property
    def alive(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        def _run():
            while not self._stop.wait(0.005):
                self.events.put(self._make())

        self._thread = threading.Thread(target=_run, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)


class FakeSdk:
    def __init__(self, config, *, led_count: int = 5):
        from src.core.backends.base import DeviceInfo

        self.info = DeviceInfo("fake:0", "Vulcan TKL", "ROCCAT", "fake:0", led_count)
        self.connected = False
        self.connects = 0
        self.disconnects = 0
        self.turn_off_calls = 0
        self.fail_connects = 0
        self.fail_pushes = 0
        self.writes = []
        self.on_write = None
        self.fills = []

    def connect(self) -> None:
        from src.core.utils.exceptions import SdkConnectionError

        self.connects += 1
        if self.fail_connects:
            self.fail_connects -= 1
            raise SdkConnectionError("OpenRGB not running")
        self.connected = True

    def select_device(self, name_filter=None):
        return self.info

    def get_device_info(self):
        return self.info

    def list_keyboards(self):
        return [self.info]

    def set_color(self, led_index, rgb) -> None:
        from src.core.utils.exceptions import SdkConnectionError

        if self.fail_pushes:
            self.fail_pushes -= 1
            raise SdkConnectionError("Lost connection to OpenRGB SDK server")
        self.writes.append((led_index, tuple(rgb)))
        if self.on_write is not None:
            self.on_write()

    def fill(self, rgb) -> None:
        # Remember how many single-LED writes came before each fill.
        self.fills.append((len(self.writes), tuple(rgb)))

    def turn_off(self) -> None:
        self.turn_off_calls += 1

    def disconnect(self) -> None:
        self.connected = False
        self.disconnects += 1


@pytest.fixture
def session_env(tmp_path, monkeypatch):
    from src.core.config import Config

    monkeypatch.setenv("OPENRGB_FADE_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setattr("src.app.session.KeyboardListener", FakeListener)
    sdk = {}

    def _factory(config):
        sdk.setdefault("client", FakeSdk(config))
        return sdk["client"]

    def _make(**overrides):
        from src.app.session import FadeSession

        cfg = Config({"tick_interval_ms": 1, "max_push_failures": 1, "connect_backoff_ms": 0, **overrides})
        session = FadeSession(cfg, client_factory=_factory, open_input=lambda name: [], sleep=lambda s: None)
        session_client = _factory(cfg)
        return session, session_client

    return _make


def _store_keymap(info, entries):
    from src.core.keymap import DeviceSignature, Keymap, KeymapStore

    KeymapStore(DeviceSignature.from_device_info(info)).save(Keymap(entries))


class TestFadeSessionRun:
    def test_run_fades_pressed_keys_then_shuts_down(self, session_env) -> None:
        session, sdk = session_env(fade_duration_ms=100000)
        _store_keymap(sdk.info, {"a": 2})
        sdk.on_write = session.stop

        session.run()
        session.shutdown()

        assert sdk.writes[0] == (2, (255, 100, 255))
        assert sdk.turn_off_calls == 1
        assert sdk.disconnects == 1
        assert session.client is None

    def test_run_fills_idle_color_before_fading(self, session_env) -> None:
        session, sdk = session_env(fade_duration_ms=100000, idle_color=[0, 0, 40])
        _store_keymap(sdk.info, {"a": 2})
        sdk.on_write = session.stop

        session.run()

        assert sdk.fills == [(0, (0, 0, 40))]
        assert sdk.writes[0] == (2, (255, 100, 255))

    def test_run_reconnects_after_lost_connection(self, session_env) -> None:
        session, sdk = session_env()
        _store_keymap(sdk.info, {"a": 0})
        sdk.fail_pushes = 1
        sdk.on_write = session.stop

        session.run()

        assert sdk.connects == 2
        assert sdk.disconnects == 1
        assert sdk.writes and sdk.writes[0][0] == 0
        assert [rgb for _, rgb in sdk.fills] == [(0, 0, 0), (0, 0, 0)]

    def test_stop_while_waiting_for_server_returns_cleanly(self, session_env) -> None:
        session, sdk = session_env(connect_retries=10)
        sdk.fail_connects = 99
        session.stop()

        session.run()

        assert sdk.connects == 1
        assert sdk.fills == []

    def test_stop_during_reconnect_returns_cleanly(self, session_env) -> None:
        session, sdk = session_env(connect_retries=10)
        _store_keymap(sdk.info, {"a": 0})
        sdk.fail_pushes = 1
        original_disconnect = sdk.disconnect

        def _disconnect_and_stop():
            original_disconnect()
            sdk.fail_connects = 99
            session.stop()

        sdk.disconnect = _disconnect_and_stop

        session.run()
        session.shutdown()

        assert sdk.connects == 2

    def test_reconnect_exhaustion_is_fatal(self, session_env) -> None:
        from src.core.utils.exceptions import SdkConnectionError

        session, sdk = session_env(connect_retries=2)
        _store_keymap(sdk.info, {"a": 0})
        sdk.fail_pushes = 1

        original_connect = sdk.connect

        def _connect_then_break():
            original_connect()
            sdk.fail_connects = 99

        sdk.connect = _connect_then_break

        with pytest.raises(SdkConnectionError):
            session.run()

    def test_initial_connect_failure_raises(self, session_env) -> None:
        from src.core.utils.exceptions import SdkConnectionError

        session, sdk = session_env(connect_retries=3)
        sdk.fail_connects = 3

        with pytest.raises(SdkConnectionError):
            session.run()
        assert sdk.connects == 3

    def test_input_failure_stops_run(self, session_env, monkeypatch) -> None:
        from src.core.input import KeyboardListener
        from src.core.utils.exceptions import InputCaptureError

        monkeypatch.setattr("src.app.session.KeyboardListener", KeyboardListener)
        session, sdk = session_env()
        _store_keymap(sdk.info, {"a": 0})

        with pytest.raises(InputCaptureError):
            session.run()


class TestFadeSessionKeymap:
    def test_loads_stored_keymap(self, session_env, monkeypatch) -> None:
        session, sdk = session_env()
        _store_keymap(sdk.info, {"a": 1})
        session.connect()
        monkeypatch.setattr(session, "calibrate", lambda: pytest.fail("calibration not expected"))

        assert session.ensure_keymap() == {"a": 1}

    @pytest.mark.parametrize("stored_led_count", [None, 7])
    def test_missing_or_mismatched_keymap_calibrates(self, session_env, monkeypatch, stored_led_count) -> None:
        from types import SimpleNamespace

        from src.core.backends.base import DeviceInfo
        from src.core.keymap import Keymap

        session, sdk = session_env()
        if stored_led_count is not None:
            _store_keymap(DeviceInfo("x", sdk.info.name, sdk.info.vendor, "x", stored_led_count), {"a": 6})
        session.connect()
        monkeypatch.setattr(session, "calibrate", lambda: SimpleNamespace(keymap=Keymap({"b": 0})))

        assert session.ensure_keymap() == {"b": 0}

    def test_calibrate_saves_keymap(self, session_env) -> None:
        session, sdk = session_env(calibration_timeout_ms=500)
        session.connect()

        result = session.calibrate()
        session.shutdown()

        assert "a" in result.keymap
        assert session.keymap_store().load() == result.keymap

    def test_list_devices_reports_keymap_status(self, session_env) -> None:
        session, sdk = session_env()

        before = session.list_devices()
        _store_keymap(sdk.info, {"a": 0})
        after = session.list_devices()

        assert [d.has_keymap for d in before] == [False]
        assert [d.has_keymap for d in after] == [True]
        assert after[0].keymap_path.endswith("roccat-vulcan_tkl.json")
