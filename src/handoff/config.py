from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

# Environment variable names for secrets
ENV_BOT_TOKEN = "HANDOFF_BOT_TOKEN"
ENV_APPLICATION_ID = "HANDOFF_APPLICATION_ID"

LOCAL_CONFIG_NAME = Path(".handoff") / "handoff.toml"
HOME_CONFIG_PATH = Path.home() / ".handoff" / "handoff.toml"

DEFAULT_API_BASE = "https://discord.com/api/v10"
DEFAULT_TIMEOUT_S = 10.0


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class ClientSettings:
    bot_token: str
    application_id: int
    api_base: str = DEFAULT_API_BASE
    timeout_s: float = DEFAULT_TIMEOUT_S


def _parse_toml(cfg_path: Path) -> dict:
    try:
        with cfg_path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError:
        raise ConfigError(f"Missing config file {cfg_path}.") from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {cfg_path}: {e}") from None
    except OSError as e:
        raise ConfigError(f"Failed to read config file {cfg_path}: {e}") from e


def load_config(path: str | Path | None = None) -> tuple[dict, Path]:
    """Read the config file.

    An explicit ``path`` must exist. Otherwise ``.handoff/handoff.toml`` in
    the working directory wins over ``~/.handoff/handoff.toml``.
    """
    if path:
        cfg_path = Path(path).expanduser()
        return _parse_toml(cfg_path), cfg_path

    for candidate in dict.fromkeys((Path.cwd() / LOCAL_CONFIG_NAME, HOME_CONFIG_PATH)):
        if candidate.is_file():
            return _parse_toml(candidate), candidate

    raise ConfigError("Missing handoff config.")


def _setting(
    config: dict, config_path: Path, key: str, env_name: str, label: str
) -> tuple[object, str]:
    """Look ``key`` up, preferring a non-blank ``env_name`` variable.

    Returns the raw value and where it came from, for error messages.
    """
    env_value = os.environ.get(env_name, "").strip()
    if env_value:
        return env_value, f"{env_name} environment variable"
    if key not in config:
        raise ConfigError(
            f"Missing {label}. Set {env_name} environment variable "
            f"or add `{key}` to {config_path}."
        )
    return config[key], f"`{key}` in {config_path}"


def get_bot_token(config: dict, config_path: Path) -> str:
    """HANDOFF_BOT_TOKEN takes precedence over `bot_token` in the config file."""
    value, source = _setting(
        config, config_path, "bot_token", ENV_BOT_TOKEN, "bot token"
    )
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Invalid {source}; expected a non-empty string.")
    return value.strip()


def get_application_id(config: dict, config_path: Path) -> int:
    """HANDOFF_APPLICATION_ID takes precedence over `application_id`."""
    value, source = _setting(
        config, config_path, "application_id", ENV_APPLICATION_ID, "application ID"
    )
    # snowflakes are often quoted to survive JSON/TOML round trips
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Invalid {source}; expected an integer.")
    return value


def get_api_base(config: dict, config_path: Path) -> str:
    value = config.get("api_base", DEFAULT_API_BASE)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"Invalid `api_base` in {config_path}; expected a non-empty string."
        )
    return value.strip().rstrip("/")


def get_timeout(config: dict, config_path: Path) -> float:
    value = config.get("timeout_s", DEFAULT_TIMEOUT_S)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(
            f"Invalid `timeout_s` in {config_path}; expected a positive number."
        )
    return float(value)


def load_settings(path: str | Path | None = None) -> ClientSettings:
    config, config_path = load_config(path)
    return ClientSettings(
        bot_token=get_bot_token(config, config_path),
        application_id=get_application_id(config, config_path),
        api_base=get_api_base(config, config_path),
        timeout_s=get_timeout(config, config_path),
    )
