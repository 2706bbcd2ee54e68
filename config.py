import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

ROOT_DIR = os.path.dirname(__file__)


def _load_dotenv(path: str, existing_env: set[str], allow_override: bool = False) -> None:
    if not os.path.exists(path):
        return
    try:
        with open(path, "r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[7:].strip()
                if "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                if not key:
                    continue
                current_value = str(os.environ.get(key, "") or "").strip()
                # Do not treat empty pre-existing env vars as authoritative.
                if key in existing_env and current_value:
                    continue
                if key in os.environ and (not allow_override) and current_value:
                    continue
                value = value.strip()
                if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
                    value = value[1:-1]
                os.environ[key] = value
    except OSError:
        return


_EXISTING_ENV = set(os.environ.keys())
_load_dotenv(os.path.join(ROOT_DIR, ".env"), _EXISTING_ENV, allow_override=False)
_load_dotenv(os.path.join(ROOT_DIR, ".env.local"), _EXISTING_ENV, allow_override=True)

APP_ENV = os.getenv("APP_ENV", "dev")
CONFIG_PATH = os.getenv("CONFIG_PATH", os.path.join(ROOT_DIR, "config.yaml"))

_ENV_ONLY_KEYS = {
    "OPENAI_API_KEY",
    "GITHUB_TOKEN",
    "GITHUB_API_TOKEN",
    "ENHANCED_AGENT_API_KEY",
}


def _load_config(path: str, env: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw_data: Any = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError):
        return {}
    data = raw_data or {}
    if isinstance(data, dict) and env in data and isinstance(data[env], dict):
        return dict(data[env])
    if isinstance(data, dict):
        return dict(data)
    return {}


_CONFIG = _load_config(CONFIG_PATH, APP_ENV)


def _get(name: str, default: Any) -> Any:
    if name in os.environ:
        return os.environ[name]
    if name in _ENV_ONLY_KEYS:
        return default
    if isinstance(_CONFIG, dict):
        if name in _CONFIG:
            return _CONFIG[name]
        lower = name.lower()
        if lower in _CONFIG:
            return _CONFIG[lower]
    return default


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes"}


API_HOST = _get("API_HOST", "127.0.0.1")
API_PORT = int(_get("API_PORT", "8010"))
APP_VERSION = str(_get("APP_VERSION", "0.1.0"))
LOG_LEVEL = str(_get("LOG_LEVEL", "INFO")).strip().upper() or "INFO"
CORS_ORIGINS = [
    item.strip()
    for item in str(_get("CORS_ORIGINS", "http://localhost:5173")).split(",")
    if item.strip()
]

OPENAI_API_KEY = str(_get("OPENAI_API_KEY", "")).strip()
OPENAI_BASE_URL = str(_get("OPENAI_BASE_URL", "https://api.openai.com/v1")).strip()
OPENAI_API_MODEL = str(_get("OPENAI_API_MODEL", "gpt-4o-mini")).strip()

GITHUB_API_BASE_URL = str(_get("GITHUB_API_BASE_URL", "https://api.github.com")).strip().rstrip("/")
GITHUB_TOKEN = str(_get("GITHUB_TOKEN", _get("GITHUB_API_TOKEN", ""))).strip()

ENHANCED_AGENT_BASE_URL = str(_get("ENHANCED_AGENT_BASE_URL", "")).strip().rstrip("/")
ENHANCED_AGENT_API_KEY = str(_get("ENHANCED_AGENT_API_KEY", "")).strip()
ENHANCED_AGENT_ENABLED = _parse_bool(_get("ENHANCED_AGENT_ENABLED", "true"), True)
ENHANCED_AGENT_TIMEOUT_SECONDS = max(1, int(_get("ENHANCED_AGENT_TIMEOUT_SECONDS", "30")))

RECOMMEND_LLM_TEMPERATURE = float(_get("RECOMMEND_LLM_TEMPERATURE", "0.7"))
RECOMMEND_LLM_MAX_TOKENS = int(_get("RECOMMEND_LLM_MAX_TOKENS", "1000"))
RECOMMEND_LLM_TIMEOUT_SECONDS = max(1, int(_get("RECOMMEND_LLM_TIMEOUT_SECONDS", "25")))
RECOMMEND_SEARCH_PER_PAGE = max(1, int(_get("RECOMMEND_SEARCH_PER_PAGE", "10")))
RECOMMEND_PROVIDER_TIMEOUT_SECONDS = max(1, int(_get("RECOMMEND_PROVIDER_TIMEOUT_SECONDS", "12")))


@dataclass(frozen=True)
class RecommendSettings:
    """Everything the recommendation pipeline reads from configuration."""

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 1000
    llm_timeout_seconds: int = 25
    github_api_base_url: str = "https://api.github.com"
    github_token: Optional[str] = None
    search_per_page: int = 10
    search_timeout_seconds: int = 12
    enhanced_agent_base_url: str = ""
    enhanced_agent_api_key: Optional[str] = None
    enhanced_agent_timeout_seconds: int = 30

    @property
    def ai_configured(self) -> bool:
        return bool(self.openai_api_key.strip())


def load_recommend_settings() -> RecommendSettings:
    return RecommendSettings(
        openai_api_key=OPENAI_API_KEY,
        openai_base_url=OPENAI_BASE_URL,
        openai_model=OPENAI_API_MODEL,
        temperature=RECOMMEND_LLM_TEMPERATURE,
        max_tokens=RECOMMEND_LLM_MAX_TOKENS,
        llm_timeout_seconds=RECOMMEND_LLM_TIMEOUT_SECONDS,
        github_api_base_url=GITHUB_API_BASE_URL,
        github_token=GITHUB_TOKEN or None,
        search_per_page=RECOMMEND_SEARCH_PER_PAGE,
        search_timeout_seconds=RECOMMEND_PROVIDER_TIMEOUT_SECONDS,
        enhanced_agent_base_url=ENHANCED_AGENT_BASE_URL if ENHANCED_AGENT_ENABLED else "",
        enhanced_agent_api_key=ENHANCED_AGENT_API_KEY or None,
        enhanced_agent_timeout_seconds=ENHANCED_AGENT_TIMEOUT_SECONDS,
    )
