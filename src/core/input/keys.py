from __future__ import annotations

from typing import Iterable, Optional, Union

# Key ids for evdev KEY_* names (linux/input-event-codes.h, prefix dropped).
# A listed name wins over its aliases in key_id_for_names.
_SPECIAL = {
    "ESC": "esc",
    "GRAVE": "grave",
    "MINUS": "minus",
    "EQUAL": "equal",
    "BACKSPACE": "backspace",
    "TAB": "tab",
    "CAPSLOCK": "caps",
    "ENTER": "enter",
    "SPACE": "space",
    "LEFTSHIFT": "lshift",
    "RIGHTSHIFT": "rshift",
    "LEFTCTRL": "lctrl",
    "RIGHTCTRL": "rctrl",
    "LEFTALT": "lalt",
    "RIGHTALT": "ralt",
    "LEFTMETA": "lwin",
    "RIGHTMETA": "rwin",
    "COMPOSE": "menu",
    "MENU": "menu",
    "BACKSLASH": "bslash",
    "102ND": "iso_bslash",
    "LEFTBRACE": "lbracket",
    "RIGHTBRACE": "rbracket",
    "SEMICOLON": "semicolon",
    "APOSTROPHE": "quote",
    "COMMA": "comma",
    "DOT": "dot",
    "SLASH": "slash",
    "DELETE": "del",
    "INSERT": "ins",
    "HOME": "home",
    "END": "end",
    "PAGEUP": "pgup",
    "PAGEDOWN": "pgdn",
    "UP": "up",
    "DOWN": "down",
    "LEFT": "left",
    "RIGHT": "right",
    "NUMLOCK": "numlock",
    "KPSLASH": "numslash",
    "KPASTERISK": "numstar",
    "KPMINUS": "numminus",
    "KPPLUS": "numplus",
    "KPENTER": "numenter",
    "KPDOT": "numdot",
    "SYSRQ": "prtsc",
    "PRINT": "prtsc",
    "SCROLLLOCK": "sc",
    "PAUSE": "pause",
    "BREAK": "pause",
    "VOLUMEUP": "volup",
    "VOLUMEDOWN": "voldown",
    "MUTE": "mute",
    "PLAYPAUSE": "play",
    "PLAY": "play",
    "STOP": "stop",
    "STOPCD": "stop",
    "NEXTSONG": "next",
    "PREVIOUSSONG": "prev",
    "CALC": "calc",
    "MAIL": "mail",
    "WWW": "www",
    "HOMEPAGE": "homepage",
    "BACK": "back",
    "FORWARD": "forward",
}

# Aliases evdev reports ahead of the real key name for some codes.
_ALIASES = {"MIN_INTERESTING"}


def evdev_key_name_to_key_id(name: str) -> Optional[str]:
    """Translate evdev key names (e.g. KEY_A) into stable key_id strings.

    Well-known keys get short names (``KEY_LEFTSHIFT`` -> ``lshift``); any other
    ``KEY_*`` name falls back to its lower-cased suffix so every physical key
    can still be calibrated.
    """

    if not name:
        return None
    n = str(name).strip().upper()
    if not n.startswith("KEY_"):
        return None
    n = n[4:]
    if not n or n in _ALIASES:
        return None

    if n in _SPECIAL:
        return _SPECIAL[n]

    if n.startswith("KP") and n[2:].isdigit():
        return f"num{n[2:]}"

    return n.lower()


def key_id_for_names(names: Union[str, Iterable[str], None]) -> Optional[str]:
    """Resolve `evdev.ecodes.KEY[code]`, which is a str or a list of aliases."""

    if names is None:
        return None
    if isinstance(names, str):
        return evdev_key_name_to_key_id(names)

    fallback = None
    for name in names:
        key_id = evdev_key_name_to_key_id(str(name))
        if key_id is None:
            continue
        if str(name).upper()[4:] in _SPECIAL:
            return key_id
        if fallback is None:
            fallback = key_id
    return fallback


def key_id_for_code(code: int) -> Optional[str]:
    """Key id for an evdev EV_KEY code, or None for non-key codes (buttons)."""

    from evdev import ecodes  # type: ignore

    return key_id_for_names(ecodes.KEY.get(int(code)))
