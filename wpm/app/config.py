# app/config.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import logging
import os

from PySide6.QtCore import QStandardPaths

DEFAULT_DURATION_SECS = 60
RESULTS_DIR_NAME = "wpm"
RESULTS_FILE_NAME = "typing_results.wpm"


@dataclass
class Config:
    test_duration: float
    results_path: Path
    log_path: Optional[Path] = None  # stderr only unless WPM_LOG_PATH is set


def default_results_path() -> Path:
    """<user config dir>/wpm/typing_results.wpm"""
    base = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.GenericConfigLocation
    )
    if not base:
        base = str(Path.home() / ".config")
    return Path(base) / RESULTS_DIR_NAME / RESULTS_FILE_NAME


def _duration_from_env(value: Optional[str]) -> int:
    if not value:
        return DEFAULT_DURATION_SECS
    try:
        secs = int(value)
    except ValueError:
        logging.warning("Ignoring WPM_TEST_DURATION=%r (not an integer)", value)
        return DEFAULT_DURATION_SECS
    if secs <= 0:
        logging.warning("Ignoring WPM_TEST_DURATION=%r (must be positive)", value)
        return DEFAULT_DURATION_SECS
    return secs


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    env = os.environ if environ is None else environ

    results = env.get("WPM_RESULTS_PATH")
    results_path = Path(results).expanduser() if results else default_results_path()

    log = env.get("WPM_LOG_PATH")
    log_path = Path(log).expanduser() if log else None

    return Config(
        test_duration=float(_duration_from_env(env.get("WPM_TEST_DURATION"))),
        results_path=results_path,
        log_path=log_path,
    )
