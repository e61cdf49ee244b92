"""Platform API configuration constants."""

import os
from importlib.metadata import version
from pathlib import Path

PLATFORM_SERVER_URL = os.environ.get(
    "AIQ_SERVER_URL", "https://api.appeariq.com/api"
)
JS_API_URL = os.environ.get(
    "AIQ_JS_API_URL",
    "https://repo.appeariq.com/nexus/service/local/artifact/maven/content"
    "?r=releases&g=com.appearnetworks.aiq&v=LATEST&a=html5-boilerplate&p=zip",
)
AIQ_CONFIG_DIR = Path.home() / ".aiq"
CONFIG_FILE = Path(os.environ.get("AIQ_CONFIG", AIQ_CONFIG_DIR / "config.json"))
USER_AGENT = f"aiq-cli/{version('aiq-cli')}"
DEFAULT_TIMEOUT = 30  # seconds

API_PREFIXES = {
    "logout": "/admin/logout",
    "solutions": "/admin/solutions",
    "app": "/admin/applications",
}

MANIFEST_FILE = "manifest.json"
MOCK_DATA_DIR = "mock-data"
SKELETON_DIR = Path(__file__).resolve().parent.parent / "skeleton"
MAX_ARCHIVE_SIZE = 20 * 1024 * 1024  # 20 MiB
MIN_API_LEVEL = 1
MAX_API_LEVEL = 65535

LOG_PORT = 8000
LOG_POLL_INTERVAL = 1  # seconds
