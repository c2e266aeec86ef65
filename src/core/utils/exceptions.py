from __future__ import annotations


class OpenRgbFadeError(Exception):
    """Base class for errors raised by openrgb-fade."""


class ConfigError(OpenRgbFadeError):
    """The config file is unreadable, malformed or holds invalid values."""


class KeymapNotFound(OpenRgbFadeError):
    """No usable keymap is stored for the attached device."""


class DeviceMismatch(KeymapNotFound):
    """A keymap exists but was recorded for a different device signature."""


class SdkConnectionError(OpenRgbFadeError):
    """The OpenRGB SDK server could not be reached or the connection dropped."""


class DeviceNotFound(SdkConnectionError):
    """The SDK server is up but exposes no matching keyboard."""


class InputCaptureError(OpenRgbFadeError):
    """Keyboard input events could not be captured."""


class CalibrationCancelled(OpenRgbFadeError):
    """Calibration was aborted before the keymap was complete."""


def is_device_disconnected(exc: BaseException) -> bool:
    """Best-effort check for a dropped SDK connection or a disappeared device.

    Kept broad and dependency-free: disconnects surface as OSError
    (EPIPE, ECONNRESET, ENODEV), ``openrgb.utils.OpenRGBDisconnected`` or a
    wrapped error carrying a descriptive message.
    """

    if isinstance(exc, (BrokenPipeError, ConnectionResetError, ConnectionAbortedError)):
        return True

    if type(exc).__name__ == "OpenRGBDisconnected":
        return True

    errno = getattr(exc, "errno", None)
    if errno in (19, 32, 104):
        # ENODEV=19, EPIPE=32, ECONNRESET=104
        return True

    try:
        msg = str(exc).lower()
    except Exception:
        return False

    return "no such device" in msg or "disconnected" in msg or "connection reset" in msg


def is_timeout(exc: BaseException) -> bool:
    """Best-effort check for a timed-out socket operation."""

    if isinstance(exc, TimeoutError):
        return True

    try:
        msg = str(exc).lower()
    except Exception:
        return False

    return "timed out" in msg


def is_permission_denied(exc: BaseException) -> bool:
    """Best-effort check for permission/authorization failures.

    Used to detect when /dev/input event nodes cannot be opened because the
    user is not in the `input` group (or no udev rule grants access).
    """

    if isinstance(exc, PermissionError):
        return True

    errno = getattr(exc, "errno", None)
    if errno in (1, 13):
        # EPERM=1, EACCES=13
        return True

    try:
        msg = str(exc).lower()
    except Exception:
        return False

    return "permission denied" in msg or "access denied" in msg or "not permitted" in msg
