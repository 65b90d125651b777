import os
import tempfile

import pytest

os.environ.setdefault("APP_LOG_DIR", tempfile.mkdtemp(prefix="seo-compare-logs-"))
os.environ.setdefault("PAGESPEED_ENABLED", "false")

from seo_compare.config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
