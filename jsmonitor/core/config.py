"""
Configuration for the monitor.
Defaults live in dataclasses; the environment is read once at the entry point.
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)


@dataclass
class BrowserConfig:
    enabled: bool = True
    headless: bool = True
    navigation_timeout_ms: int = 30000
    settle_delay: float = 5.0
    session_storage_key: str = "session_active_session"
    authenticated_pages: List[str] = field(default_factory=lambda: ["/home", "/messages"])
    launch_args: List[str] = field(default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"])


@dataclass
class StorageConfig:
    output_dir: str = "data"
    js_dir_name: str = "fansly-js"
    metadata_dir_name: str = "metadata"


@dataclass
class Config:
    base_url: str = "https://fansly.com"
    api_host: str = "apiv3.fansly.com"
    api_path_prefix: str = "/api"
    asset_pattern: str = r'\ssrc\s*=\s*"(main\..*?\.js)"'
    vendor_prefix: str = "fansly-"
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: int = 60
    prettify_js: bool = False
    auth_token: Optional[str] = None
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def get_default_config() -> Config:
    return Config()


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build a Config from environment variables.

    PRETTIFY_JS=true       beautify the saved asset copy
    FANSLY_TOKEN=<token>   inject a session before capturing traffic
    JSMONITOR_OUTPUT_DIR   output root (default: data)
    JSMONITOR_NO_BROWSER   skip live traffic capture
    """
    env = os.environ if environ is None else environ
    config = get_default_config()

    config.prettify_js = _env_flag(env.get("PRETTIFY_JS"))
    config.auth_token = (env.get("FANSLY_TOKEN") or "").strip() or None

    output_dir = (env.get("JSMONITOR_OUTPUT_DIR") or "").strip()
    if output_dir:
        config.storage.output_dir = output_dir

    if _env_flag(env.get("JSMONITOR_NO_BROWSER")):
        config.browser.enabled = False

    return config
