"""Keymap calibration."""

from __future__ import annotations

from .wizard import CalibrationResult, CalibrationWizard

__all__ = ["CalibrationResult", "CalibrationWizard"]
