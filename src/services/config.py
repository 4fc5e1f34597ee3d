"""
Loads and handles config from config.yml
API tokens (GITHUB_TOKEN, MODELS_TOKEN) are loaded from the environment / .env for security
"""
import logging
import os
from typing import List, Dict, Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from core.errors import ConfigError

logger = logging.getLogger(__name__)


class ProjectConfig(BaseModel):
    """The project the digest is about. `name` is the canonical brand spelling."""
    name: str = "npmx"


class GitHubConfig(BaseModel):
    """Configuration for the issue/PR search source."""
    enabled: bool = True
    owner: str = "npmx-dev"
    repo: str = "npmx.dev"
    filters: str = "is:closed reason:completed -is:unmerged"
    per_page: int = Field(100, ge=1, le=100)
    timeout: float = 30.0


class BlueskyConfig(BaseModel):
    """Configuration for the social feed source."""
    enabled: bool = True
    handle: str = "npmx.dev"
    page_limit: int = Field(100, ge=1, le=100)
    max_pages: int = Field(20, ge=1)
    timeout: float = 30.0


class LLMConfig(BaseModel):
    """Configuration for the hosted chat-completion endpoint."""
    base_url: str = "https://models.inference.ai.azure.com"
    model: str = "gpt-4o-mini"
    clustering_temperature: float = 0.3
    title_temperature: float = 0.8
    title_max_tokens: int = 30
    timeout: float = 120.0


class MarkConfig(BaseModel):
    """A fixed daily publication slot (UTC) and the post type it produces."""
    hour: int = Field(..., ge=0, le=23)
    type: str


def _default_marks() -> List[MarkConfig]:
    return [
        MarkConfig(hour=6, type="daily"),
        MarkConfig(hour=14, type="midday"),
        MarkConfig(hour=22, type="nightly"),
    ]


class ScheduleConfig(BaseModel):
    """Window selection policy."""
    marks: List[MarkConfig] = Field(default_factory=_default_marks)
    lookback_hours: float = Field(8, gt=0)
    snap_minutes: float = Field(60, ge=0)
    trigger_skew_hours: int = Field(1, ge=0, le=12)

    @field_validator("marks")
    @classmethod
    def _check_marks(cls, marks: List[MarkConfig]) -> List[MarkConfig]:
        if not marks:
            raise ValueError("schedule.marks must not be empty")
        hours = [m.hour for m in marks]
        if len(set(hours)) != len(hours):
            raise ValueError("schedule.marks must have unique hours")
        return sorted(marks, key=lambda m: m.hour)

    @property
    def post_types(self) -> List[str]:
        return [m.type for m in self.marks]


class LivenessConfig(BaseModel):
    """Outbound link reachability probe."""
    enabled: bool = True
    timeout_seconds: float = Field(3.0, gt=0)
    sources: List[str] = Field(default_factory=lambda: ["bluesky"])


class OutputConfig(BaseModel):
    """Where posts are written, and how many prior headlines to avoid."""
    posts_dir: str = "src/content/posts"
    recent_titles: int = Field(10, ge=0)


class Config(BaseModel):
    # Credentials
    GITHUB_TOKEN: Optional[str] = None
    MODELS_TOKEN: Optional[str] = None

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    bluesky: BlueskyConfig = Field(default_factory=BlueskyConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    liveness: LivenessConfig = Field(default_factory=LivenessConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def require_credentials(self, *, github: bool = True, models: bool = True) -> None:
        """
        Fail fast on missing tokens, before any network activity.
        """
        missing = []
        if github and self.github.enabled and not self.GITHUB_TOKEN:
            missing.append("GITHUB_TOKEN")
        if models and not self.MODELS_TOKEN:
            missing.append("MODELS_TOKEN")
        if missing:
            raise ConfigError(f"Environment variable(s) missing: {', '.join(missing)}")


_SECTIONS = ("project", "github", "bluesky", "llm", "schedule", "liveness", "output")


def _bool(value: str | bool) -> bool:
    """Convert string or bool to boolean."""
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


def _get_config_path(path: Optional[str] = None) -> Optional[str]:
    """Get the path to config.yml, handling different working directories."""
    if path:
        if not os.path.exists(path):
            raise ConfigError(f"Config file not found: {path}")
        return path

    env_path = os.getenv("DIGEST_CONFIG")
    if env_path:
        if not os.path.exists(env_path):
            raise ConfigError(f"DIGEST_CONFIG points to a missing file: {env_path}")
        return env_path

    # Try relative path first
    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    # No file: run on defaults
    return None


def _read_yaml(path: Optional[str]) -> Dict[str, Any]:
    if path is None:
        logger.warning("No config.yml found, using built-in defaults")
        return {}

    with open(path, 'r') as file:
        data = yaml.safe_load(file) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


def _normalize_sections(data: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce string booleans the way .env / YAML users tend to write them."""
    normalized = dict(data)
    for section in ("github", "bluesky", "liveness"):
        values = normalized.get(section)
        if isinstance(values, dict) and "enabled" in values:
            normalized[section] = {**values, "enabled": _bool(values["enabled"])}
    return normalized


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from config.yml and API tokens from .env."""
    # Load .env for sensitive credentials
    load_dotenv()

    config = _normalize_sections(_read_yaml(_get_config_path(path)))

    models_token = os.getenv("MODELS_TOKEN") or None
    # GitHub Models tokens are GitHub PATs, so the search API accepts them too
    github_token = os.getenv("GITHUB_TOKEN") or models_token

    sections = {}
    for key, value in config.items():
        if key in _SECTIONS:
            sections[key] = value
        else:
            logger.warning(f"Ignoring unknown config key: {key}")

    try:
        return Config(
            GITHUB_TOKEN=github_token,
            MODELS_TOKEN=models_token,
            **sections,
        )
    except ValueError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
