"""Configuration management for rcmt."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigError

CONFIG_DIR_NAME = ".rcmt"
CONFIG_FILE_NAME = "config.json"

DEFAULT_MIN_QUALITY_SCORE = 7
DEFAULT_REQUEST_TIMEOUT = 60.0

DEFAULT_MODELS = {
    "openai": {
        "model": "gpt-4o-mini",
        "endpoint": "https://api.openai.com/v1",
        "api_key_env": "OPENAI_API_KEY",
    },
    "anthropic": {
        "model": "claude-3-5-haiku-latest",
        "endpoint": "https://api.anthropic.com",
        "api_key_env": "ANTHROPIC_API_KEY",
    },
    "xai": {
        "model": "grok-code-fast",
        "endpoint": "https://api.x.ai/v1",
        "api_key_env": "XAI_API_KEY",
    },
    "github": {
        "model": "openai/gpt-4.1-mini",
        "endpoint": "https://models.github.ai/inference",
        "api_key_env": "GITHUB_TOKEN",
    },
    "ollama": {
        "model": "llama3.2",
        "endpoint": "http://localhost:11434",
        "api_key_env": "",
    },
}

_FUZZY_ENV_HINTS = {
    "openai": ["OPENAI", "OPENAI_API", "OA_KEY"],
    "anthropic": ["ANTHROPIC", "CLAUDE"],
    "xai": ["XAI", "GROK"],
    "github": ["GITHUB_TOKEN", "GH_TOKEN", "GH_MODELS"],
    "ollama": [],
}

# Keys written to .rcmt/config.json. Run flags (dry_run, max_commits, ...)
# are never persisted.
_PERSISTED_KEYS = (
    "provider",
    "model",
    "llm_endpoint",
    "api_key_env",
    "template",
    "language",
    "min_quality_score",
)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration for one rcmt run."""

    provider: str
    model: str
    llm_endpoint: str
    api_key_env: str
    git_repo_path: str = "."
    branch: Optional[str] = None
    dry_run: bool = False
    verbose: bool = False
    max_commits: Optional[int] = None
    skip_backup: bool = False
    skip_well_formed: bool = True
    min_quality_score: int = DEFAULT_MIN_QUALITY_SCORE
    template: Optional[str] = None
    language: Optional[str] = None
    custom_prompt: Optional[str] = None
    assume_yes: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def requires_api_key(self) -> bool:
        return self.provider != "ollama"

    def resolve_api_key(self) -> Optional[str]:
        """Return the API key from the configured environment variable."""
        if not self.api_key_env:
            return None
        return os.environ.get(self.api_key_env)

    def with_overrides(self, **changes: Any) -> "Config":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the persistable part of the configuration."""
        data = asdict(self)
        return {key: data[key] for key in _PERSISTED_KEYS}


_CONFIG_STATE: Dict[str, Optional[Config]] = {"active": None}


def _ensure_path(path_like: Optional[Path]) -> Path:
    if path_like is None:
        return Path.cwd().resolve(strict=False)
    return Path(path_like).expanduser().resolve(strict=False)


def _config_dir(repo_root: Optional[Path] = None) -> Path:
    return _ensure_path(repo_root) / CONFIG_DIR_NAME


def config_file_path(repo_root: Optional[Path] = None) -> Path:
    return _config_dir(repo_root) / CONFIG_FILE_NAME


def save_config(config: Config, repo_root: Optional[Path] = None) -> Path:
    """Persist provider and message defaults as JSON within the repository."""
    cfg_path = config_file_path(repo_root)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(json.dumps(config.to_dict(), indent=2))
    return cfg_path


def load_persisted_config(
    repo_root: Optional[Path] = None,
) -> Optional[Dict[str, Any]]:
    cfg_path = config_file_path(repo_root)
    if not cfg_path.exists():
        return None
    try:
        data = json.loads(cfg_path.read_text())
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return {key: data[key] for key in _PERSISTED_KEYS if key in data}


def detect_available_providers(
    env: Optional[Dict[str, str]] = None,
) -> Dict[str, List[str]]:
    """Return mapping of provider -> matching env vars found."""
    env_dict: Dict[str, str] = dict(env or os.environ)
    detected: Dict[str, List[str]] = {p: [] for p in DEFAULT_MODELS}
    for provider, defaults in DEFAULT_MODELS.items():
        key_name = defaults["api_key_env"]
        if key_name and key_name in env_dict:
            detected[provider].append(key_name)
        hints = _FUZZY_ENV_HINTS.get(provider, [])
        for env_key in env_dict:
            if env_key in detected[provider]:
                continue
            for hint in hints:
                if hint.lower() in env_key.lower():
                    detected[provider].append(env_key)
                    break
    return detected


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def load_config(
    *,
    repo_root: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Config:
    """Build configuration from config file, environment and overrides.

    ``overrides`` values of ``None`` are treated as "not given" so argparse
    namespaces can be passed through without filtering.
    """

    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    repo_root = _ensure_path(repo_root)
    persisted = load_persisted_config(repo_root) or {}
    detected = detect_available_providers()

    provider_override = overrides.get("provider") or os.environ.get("RCMT_PROVIDER")
    if provider_override:
        provider = str(provider_override).lower()
    elif persisted.get("provider"):
        provider = persisted["provider"]
    else:
        provider = _auto_select_provider(detected)
    if provider not in DEFAULT_MODELS:
        # Unknown providers are reported by LLMClient; keep defaults usable.
        defaults = DEFAULT_MODELS["openai"]
    else:
        defaults = DEFAULT_MODELS[provider]

    same_provider = persisted.get("provider") == provider
    model = (
        overrides.get("model")
        or (persisted.get("model") if same_provider else None)
        or os.environ.get("RCMT_MODEL")
        or defaults["model"]
    )
    endpoint = (
        overrides.get("endpoint")
        or (persisted.get("llm_endpoint") if same_provider else None)
        or os.environ.get("RCMT_ENDPOINT")
        or defaults["endpoint"]
    )
    api_key_env = (
        overrides.get("api_key_env")
        or (persisted.get("api_key_env") if same_provider else None)
        or _select_env_var_for_provider(provider)
    )

    git_repo_candidate = Path(overrides.get("repo_path") or str(repo_root)).expanduser()
    if not git_repo_candidate.is_absolute():
        git_repo_candidate = repo_root / git_repo_candidate
    git_repo_path = str(git_repo_candidate.resolve(strict=False))

    raw_score = overrides.get("min_quality_score")
    if raw_score is None:
        raw_score = os.environ.get("RCMT_MIN_QUALITY_SCORE") or persisted.get(
            "min_quality_score"
        )
    min_quality_score = (
        int(raw_score) if raw_score not in (None, "") else DEFAULT_MIN_QUALITY_SCORE
    )
    if not 1 <= min_quality_score <= 10:
        raise ConfigError(
            f"min_quality_score must be between 1 and 10, got {min_quality_score}"
        )

    timeout_env = os.environ.get("RCMT_LLM_REQUEST_TIMEOUT")
    try:
        request_timeout = float(timeout_env) if timeout_env else DEFAULT_REQUEST_TIMEOUT
    except ValueError:
        request_timeout = DEFAULT_REQUEST_TIMEOUT

    config = Config(
        provider=provider,
        model=model,
        llm_endpoint=endpoint,
        api_key_env=api_key_env if api_key_env is not None else defaults["api_key_env"],
        git_repo_path=git_repo_path,
        branch=overrides.get("branch"),
        dry_run=_as_bool(overrides.get("dry_run", False)),
        verbose=_as_bool(overrides.get("verbose", False)),
        max_commits=_optional_int(overrides.get("max_commits")),
        skip_backup=_as_bool(overrides.get("skip_backup", False)),
        skip_well_formed=_as_bool(overrides.get("skip_well_formed", True)),
        min_quality_score=min_quality_score,
        template=(
            overrides.get("template")
            or os.environ.get("RCMT_TEMPLATE")
            or persisted.get("template")
        ),
        language=(
            overrides.get("language")
            or os.environ.get("RCMT_LANGUAGE")
            or persisted.get("language")
        ),
        custom_prompt=overrides.get("custom_prompt"),
        assume_yes=_as_bool(overrides.get("assume_yes", False)),
        request_timeout=request_timeout,
    )

    set_active_config(config)
    return config


def _select_env_var_for_provider(provider: str) -> Optional[str]:
    if provider not in DEFAULT_MODELS:
        return None
    defaults = DEFAULT_MODELS[provider]["api_key_env"]
    if not defaults:
        return ""
    env_matches = detect_available_providers().get(provider, [])
    if defaults in env_matches:
        return defaults
    return env_matches[0] if env_matches else defaults


def _auto_select_provider(
    detected: Optional[Dict[str, List[str]]] = None,
) -> str:
    if detected is None:
        detected = detect_available_providers()
    for provider in ("openai", "anthropic", "xai", "github"):
        if detected.get(provider):
            return provider
    return "openai"


def set_active_config(config: Config) -> None:
    _CONFIG_STATE["active"] = config


def get_active_config() -> Config:
    active = _CONFIG_STATE.get("active")
    if active is None:
        return load_config()
    return active


def clear_active_config() -> None:
    _CONFIG_STATE["active"] = None


def describe_provider(provider: str) -> str:
    meta = DEFAULT_MODELS.get(provider)
    if not meta:
        return provider
    return f"{provider} (default model: {meta['model']})"
