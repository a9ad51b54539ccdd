import os

from .types import AuthConfig, coerce_auth_config

DEFAULT_PREFIX = "SAPO_"

# env suffix -> AuthConfig field
_FIELDS = {
    "AUTH_TYPE": "type",
    "STORE": "store",
    "API_KEY": "api_key",
    "API_SECRET": "api_secret",
    "SECRET_KEY": "secret_key",
    "REDIRECT_URI": "redirect_uri",
}


def _parse_env_file(env_path: str) -> dict[str, str]:
    """Parse a simple .env file into a dict without modifying os.environ.

    Supports basic KEY=VALUE pairs, ignoring comments and blank lines.
    Surrounding single/double quotes are stripped if present.
    """
    values: dict[str, str] = {}
    try:
        with open(env_path) as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[len("export ") :]
                if "=" not in line:
                    continue
                key, val = line.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                if key:
                    values[key] = val
    except FileNotFoundError:
        # A missing file just means nothing to add
        pass
    return values


def load_auth_config_from_env(
    prefix: str = DEFAULT_PREFIX,
    env_path: str | None = None,
) -> AuthConfig:
    """Build an AuthConfig from environment variables.

    Reads {prefix}STORE, {prefix}API_KEY, {prefix}API_SECRET, {prefix}SECRET_KEY,
    {prefix}REDIRECT_URI and {prefix}AUTH_TYPE ("private" | "oauth"). When AUTH_TYPE
    is unset, the presence of SECRET_KEY or REDIRECT_URI selects "oauth".

    If 'env_path' is provided, variables from the .env file augment lookups (without
    mutating the process environment). Values in the actual environment take
    precedence over the file.

    Required fields are not checked here; the client raises ConfigurationError.
    """
    file_env = _parse_env_file(env_path) if env_path else {}
    env_map: dict[str, str] = {**file_env, **os.environ}

    values = {
        field: env_map[f"{prefix}{suffix}"]
        for suffix, field in _FIELDS.items()
        if env_map.get(f"{prefix}{suffix}")
    }
    if "type" not in values and ("secret_key" in values or "redirect_uri" in values):
        values["type"] = "oauth"
    return coerce_auth_config(values)
