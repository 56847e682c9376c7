"""Configuration management for elabmath."""

import os
import shlex
import sys
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


def _parse_evaluator_command() -> list[str]:
    """Parse the out-of-process evaluator command from environment variable."""
    command_env = os.getenv("ELABMATH_EVALUATOR_COMMAND")
    if command_env:
        return shlex.split(command_env)
    return [sys.executable, "-m", "elabmath", "evaluate"]


def _parse_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


def _parse_optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


class Settings(BaseModel):
    """Application settings."""

    # Reference resolution - what an #id reference to a missing element becomes
    # 'fail' keeps the placeholder as written, 'empty' substitutes ""
    missing_reference: Literal["fail", "empty"] = os.getenv(
        "ELABMATH_MISSING_REFERENCE", "fail"
    )

    # Number of re-entrant passes when a reference pulls in another placeholder
    max_recursion_depth: int = int(os.getenv("ELABMATH_MAX_RECURSION_DEPTH", "1"))

    # Number formatting
    precision: Optional[int] = _parse_optional_int("ELABMATH_PRECISION")  # Significant digits, None = shortest
    scalar_lower_exp: int = int(os.getenv("ELABMATH_SCALAR_LOWER_EXP", "-6"))
    scalar_upper_exp: int = int(os.getenv("ELABMATH_SCALAR_UPPER_EXP", "21"))
    unit_lower_exp: int = int(os.getenv("ELABMATH_UNIT_LOWER_EXP", "-3"))
    unit_upper_exp: int = int(os.getenv("ELABMATH_UNIT_UPPER_EXP", "5"))

    # Optional presentation rules
    auto_prefix: bool = os.getenv("ELABMATH_AUTO_PREFIX", "true").lower() == "true"
    microliter_precision_steps: bool = (
        os.getenv("ELABMATH_MICROLITER_PRECISION_STEPS", "false").lower() == "true"
    )

    # Unit system
    extended_identifiers: bool = (
        os.getenv("ELABMATH_EXTENDED_IDENTIFIERS", "true").lower() == "true"
    )
    unit_redefinition: Literal["ignore", "warn", "raise"] = os.getenv(
        "ELABMATH_UNIT_REDEFINITION", "ignore"
    )

    # Out-of-process evaluation
    evaluator_command: list[str] = _parse_evaluator_command()
    evaluator_timeout: Optional[float] = _parse_optional_float("ELABMATH_EVALUATOR_TIMEOUT")  # None = no timeout
    temp_dir: Optional[Path] = Path(os.environ["ELABMATH_TEMP_DIR"]) if os.getenv("ELABMATH_TEMP_DIR") else None

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"

    # CORS settings (comma-separated list of allowed origins, or * for all)
    cors_allow_origins: list[str] = _parse_cors_origins()

    log_level: str = os.getenv("LOG_LEVEL", "WARNING")


settings = Settings()
