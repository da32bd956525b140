"""Flask configuration."""

import os
from pathlib import Path


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value else default


class Config:
    """Base configuration."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-prod")

    # Instance folder is at project root
    PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
    INSTANCE_PATH = PROJECT_ROOT / "instance"

    # Storage: 'file', 'sqlite' or 'none' (see blissnexus.storage)
    STORAGE_BACKEND = os.environ.get("BLISSNEXUS_STORAGE_BACKEND", "file")
    WORLDS_PATH = os.environ.get("BLISSNEXUS_WORLDS_PATH", str(INSTANCE_PATH / "worlds"))
    DATABASE_URI = os.environ.get("BLISSNEXUS_DATABASE_URI", str(INSTANCE_PATH / "blissnexus.db"))

    # World
    TIME_SCALE = _env_float("BLISSNEXUS_TIME_SCALE", 1.0)  # 0.1 runs ten times faster
    ARM_TIMERS = True

    # LLM
    LLM_BACKEND = os.environ.get("BLISSNEXUS_LLM_BACKEND", "claude")  # 'claude' or 'none'
    LLM_TIMEOUT = _env_float("BLISSNEXUS_LLM_TIMEOUT", 30.0)  # seconds to wait for a ruler
    REQUIRE_LLM = os.environ.get("BLISSNEXUS_REQUIRE_LLM", "0") == "1"

    # Long-poll
    POLL_TIMEOUT = 25.0
    REQUEST_TIMEOUT = 90.0


class TestConfig(Config):
    """Testing configuration."""

    TESTING = True
    STORAGE_BACKEND = "none"
    LLM_BACKEND = "none"
    REQUIRE_LLM = False
    ARM_TIMERS = False
    POLL_TIMEOUT = 0.2
    REQUEST_TIMEOUT = 10.0
