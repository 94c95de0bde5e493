from __future__ import annotations

import datetime as dt
import shutil
from pathlib import Path

from .errors import WriteError

TRUE_VALUES = {"1", "true", "yes", "y", "on"}
FALSE_VALUES = {"0", "false", "no", "n", "off"}


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def as_datetime(value: dt.date) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    return dt.datetime.combine(value, dt.time())


def rfc822_date(value: dt.date) -> str:
    value = as_datetime(value).replace(tzinfo=dt.timezone.utc)
    return value.strftime("%a, %d %b %Y %H:%M:%S %z")


def iso_date(value: dt.date) -> str:
    value = as_datetime(value).replace(tzinfo=dt.timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def clean_output_dir(output_dir: Path, protected: list[Path]) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    for path in protected:
        path_resolved = path.resolve()
        if path_resolved == output_resolved or path_resolved.is_relative_to(output_resolved):
            raise WriteError(f"Refusing to clean {output_dir}: it contains {path}", path=str(output_dir))
    shutil.rmtree(output_dir)
