import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

TRUTHY = {"1", "true", "yes"}


def _env_flag(name: str) -> bool | None:
    value = os.getenv(name)
    if value is None:
        return None
    return value.lower() in TRUTHY


class PatchOptions(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
    )

    strip: int = Field(default=0, ge=0)
    output_dir: Path
    encoding: str = "utf-8"
    dry_run: bool = False
    allow_symlinks: bool = False

    @field_validator("output_dir")
    @classmethod
    def absolute_output_dir(cls, v: Path) -> Path:
        return Path(v).absolute()

    @field_serializer("output_dir")
    def serialize_path(self, v: Path) -> str:
        return str(v)

    @classmethod
    def from_env(cls, **overrides) -> "PatchOptions":
        """
        Build options from UNIPATCH_* environment variables.

        Explicit keyword overrides win over the environment.
        """

        values: dict[str, object] = {}
        encoding = os.getenv("UNIPATCH_ENCODING")
        if encoding:
            values["encoding"] = encoding
        for field, env_name in (
            ("dry_run", "UNIPATCH_DRY_RUN"),
            ("allow_symlinks", "UNIPATCH_ALLOW_SYMLINKS"),
        ):
            flag = _env_flag(env_name)
            if flag is not None:
                values[field] = flag

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def log_level_from_env(default: int = logging.WARNING) -> int:
    name = os.getenv("UNIPATCH_LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default
