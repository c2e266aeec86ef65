"""Default configuration values.

Written verbatim to config.json on first run.
"""

from __future__ import annotations

DECAY_CURVES = ("linear", "exponential")

DEFAULTS: dict = {
    # OpenRGB SDK server (openrgb --server).
    "sdk_host": "127.0.0.1",
    "sdk_port": 6742,
    # Time for a lit key to fade from base_color back to idle_color.
    "fade_duration_ms": 1000,
    # Fade loop cadence; 16ms is roughly 60 frames per second.
    "tick_interval_ms": 16,
    "base_color": [255, 100, 255],
    # Color of keys that are not fading. [0, 0, 0] turns them off.
    "idle_color": [0, 0, 0],
    # Color used to light the LED the calibration is asking about.
    "prompt_color": [255, 255, 255],
    # 'linear' | 'exponential'
    "decay_curve": "linear",
    # Socket timeout for a single LED update.
    "push_timeout_ms": 250,
    # Consecutive failed ticks before the connection is treated as lost.
    "max_push_failures": 30,
    # Connection attempts (initial connect and reconnect) before giving up.
    "connect_retries": 10,
    # Linear backoff step between connection attempts (capped at 10s).
    "connect_backoff_ms": 250,
    # How long calibration waits for a key press before skipping an LED.
    "calibration_timeout_ms": 10000,
    # Pending key events kept while the fade loop is busy; oldest are dropped.
    "input_queue_size": 256,
    # Substring of the OpenRGB keyboard name to drive. None picks the first keyboard.
    "device_name": None,
    # Substring of the evdev input device name to listen on. None listens on every keyboard.
    "input_device_name": None,
}
