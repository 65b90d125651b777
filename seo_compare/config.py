"""Environment-driven settings for fetching, discovery and analysis."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SEOComparisonBot/1.0)"

DEFAULT_EXCLUDED_DOMAINS: tuple[str, ...] = (
    "google.com",
    "duckduckgo.com",
    "youtube.com",
    "facebook.com",
    "twitter.com",
    "linkedin.com",
    "instagram.com",
    "pinterest.com",
    "reddit.com",
    "quora.com",
    # Review aggregators dominate "<domain> competitors" queries.
    "g2.com",
    "capterra.com",
    "trustradius.com",
    "getapp.com",
    "softwareadvice.com",
)


@dataclass(frozen=True, slots=True)
class Settings:
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: int = 10
    pagespeed_enabled: bool = True
    pagespeed_api_key: str | None = None
    pagespeed_strategy: str = "mobile"
    pagespeed_timeout: int = 60
    max_workers: int = 8
    max_competitors: int = 3
    competitor_limit: int = 5
    excluded_domains: tuple[str, ...] = DEFAULT_EXCLUDED_DOMAINS
    log_dir: str = "logs"
    log_filename: str = "latest-run.log"
    log_level: str = "INFO"


def _int_env(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s value %s; falling back to %s", name, raw, default)
        return default
    return max(minimum, value)


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _strategy_env() -> str:
    value = (os.getenv("PAGESPEED_STRATEGY") or "mobile").strip().lower()
    if value not in {"mobile", "desktop"}:
        logger.warning("Unsupported PAGESPEED_STRATEGY %s; using mobile", value)
        return "mobile"
    return value


def _excluded_domains() -> tuple[str, ...]:
    extra = os.getenv("SEO_EXTRA_EXCLUDED_DOMAINS", "")
    additions = [item.strip().lower() for item in extra.split(",") if item.strip()]
    merged = list(DEFAULT_EXCLUDED_DOMAINS)
    for domain in additions:
        if domain not in merged:
            merged.append(domain)
    return tuple(merged)


def load_settings() -> Settings:
    """Read settings from the environment without caching."""

    return Settings(
        user_agent=os.getenv("SEO_USER_AGENT", DEFAULT_USER_AGENT).strip() or DEFAULT_USER_AGENT,
        request_timeout=_int_env("SEO_REQUEST_TIMEOUT", 10),
        pagespeed_enabled=_bool_env("PAGESPEED_ENABLED", True),
        pagespeed_api_key=os.getenv("PAGESPEED_API_KEY") or None,
        pagespeed_strategy=_strategy_env(),
        pagespeed_timeout=_int_env("PAGESPEED_TIMEOUT", 60),
        max_workers=_int_env("SEO_MAX_WORKERS", 8),
        max_competitors=_int_env("SEO_MAX_COMPETITORS", 3),
        competitor_limit=_int_env("SEO_COMPETITOR_LIMIT", 5),
        excluded_domains=_excluded_domains(),
        log_dir=os.getenv("APP_LOG_DIR", "").strip() or "logs",
        log_filename=os.getenv("APP_LOG_FILENAME", "").strip() or "latest-run.log",
        log_level=os.getenv("LOG_LEVEL", "").strip().upper() or "INFO",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
