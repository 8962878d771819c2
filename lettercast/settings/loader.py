import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from lettercast.settings.models import Settings

ENV_PREFIX = "LETTERCAST__"
CONFIG_PATH_ENV = "LETTERCAST_CONFIG"
DEFAULT_CONFIG_PATH = Path("configuration.yaml")


def _strip_code_fence(content: str) -> str:
    """Return the first ```yaml block if the file has one, else the whole file."""
    lines = content.splitlines()
    yaml_lines = []
    in_block = False
    found_block = False

    for line in lines:
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            break
        if in_block:
            yaml_lines.append(line)

    return "\n".join(yaml_lines) if found_block else content


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """
    Overlay LETTERCAST__SECTION__KEY=value variables onto the parsed file.

    LETTERCAST__EMAIL_CLIENT__AUTHORIZATION_TOKEN=xyz sets
    data["email_client"]["authorization_token"]. Values stay strings;
    pydantic coerces them.
    """
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        parts = [p.lower() for p in key[len(ENV_PREFIX):].split("__") if p]
        if not parts:
            continue
        target = data
        for part in parts[:-1]:
            node = target.get(part)
            if not isinstance(node, dict):
                node = {}
                target[part] = node
            target = node
        target[parts[-1]] = value
    return data


def resolve_config_path(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    return Path(env.get(CONFIG_PATH_ENV, str(DEFAULT_CONFIG_PATH)))


def load_settings(path: Path, environ: Mapping[str, str] | None = None) -> Settings:
    """
    Load and validate the configuration file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if YAML or schema invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(_strip_code_fence(content)) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in configuration file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping, got {type(data).__name__}")

    data = apply_env_overrides(data, os.environ if environ is None else environ)

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed:\n{e}") from e
