"""
Parameter document persistence. One flat document per file, JSON or YAML.

Writes are atomic: temp file in the target directory, fsync, os.replace.
A failed save never leaves a partial file at the target path.
"""

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

import yaml

from llm.errors import ValidationError

log = logging.getLogger(__name__)

JSON_SUFFIXES = {".json"}
YAML_SUFFIXES = {".yaml", ".yml"}


def _format_for(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in JSON_SUFFIXES:
        return "json"
    if suffix in YAML_SUFFIXES:
        return "yaml"
    raise ValidationError(f"{path} must be json or yaml (got suffix '{path.suffix}')")


def _dump(document: Mapping, fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(dict(document), sort_keys=False, default_flow_style=False)
    return json.dumps(document, indent=2) + "\n"


def save_params(document: Mapping, path: str | os.PathLike) -> Path:
    """
    Write a parameter document to path. Key order is preserved as given.

    Raises:
        ValidationError: Unsupported file suffix.
        OSError: Directory missing or not writable.
    """
    path = Path(path)
    fmt = _format_for(path)
    payload = _dump(document, fmt)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    log.info(f"Saved parameters to {path}")
    return path


def load_params(path: str | os.PathLike) -> dict:
    """Read a parameter document. Feed the result to ParameterSet.from_config."""
    path = Path(path)
    fmt = _format_for(path)
    with open(path, encoding="utf-8") as f:
        if fmt == "yaml":
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise ValidationError(
            f"{path} must hold a flat key-value document, got {type(data).__name__}"
        )
    return data
