"""
config.py - Configuration model for dmmscout
"""

import sys
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field, ValidationError
from rich.console import Console

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

console = Console(stderr=True)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class HttpConfig(BaseModel):
    """Settings shared by every page fetch and its clones."""

    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = Field(default=30.0, gt=0, description="Total seconds allowed per page fetch")
    cookies: Dict[str, str] = Field(
        default_factory=lambda: {"age_check_done": "1"},
        description="Cookies sent with every request (the age gate is skipped by default)",
    )


class DMMConfig(BaseModel):
    base_url: str = "https://www.dmm.co.jp/"
    search_path: str = "digital/-/list/search/=/?searchstr={keyword}"

    def search_url(self, keyword: str) -> str:
        path = self.search_path.format(keyword=quote(keyword, safe=""))
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class ScoutConfig(BaseModel):
    dmm: DMMConfig = Field(default_factory=DMMConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    config_path: Optional[Path] = None


def default_config() -> ScoutConfig:
    return ScoutConfig()


def load_config(config_path: Path) -> ScoutConfig:
    """Load configuration from TOML file"""

    if not config_path.exists():
        console.print(f"[red][ERROR][/red] Configuration file not found: {config_path}")
        sys.exit(1)

    try:
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)

        return ScoutConfig(
            dmm=DMMConfig(**config_data.get("dmm", {})),
            http=HttpConfig(**config_data.get("http", {})),
            config_path=config_path,
        )

    except (OSError, tomllib.TOMLDecodeError, ValidationError, TypeError) as e:
        console.print(f"[red][ERROR][/red] Error loading configuration: {e}")
        sys.exit(1)
