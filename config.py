"""Shared constants and credential configuration for Nightfall CMS."""

import json
import os

_SETTINGS_FILE = os.path.expanduser("~/.config/nightfall-cms/settings.json")


def _read_setting(*keys, default=None):
    """Read a nested setting from the settings file."""
    try:
        with open(_SETTINGS_FILE) as f:
            data = json.load(f)
        for k in keys:
            data = data[k]
        return data
    except (FileNotFoundError, json.JSONDecodeError, KeyError, TypeError):
        return default


def _env_or_setting(env_name: str, *keys, default=None):
    """Environment variable wins; otherwise fall back to the settings file."""
    value = os.getenv(env_name)
    if value:
        return value
    return _read_setting(*keys, default=default)


def get_github_token() -> str:
    """Return the source-control token, read fresh so rotation needs no restart."""
    return _env_or_setting("GITHUB_TOKEN", "github", "token", default="") or ""


def get_openai_api_key() -> str:
    """Return the completion API key."""
    return _env_or_setting("OPENAI_API_KEY", "openai", "api_key", default="") or ""


GITHUB_OWNER = _env_or_setting("GITHUB_OWNER", "github", "owner", default="sebbys")
GITHUB_REPO = _env_or_setting("GITHUB_REPO", "github", "repo", default="nightfall-cms")
GITHUB_BRANCH = _env_or_setting("GITHUB_BRANCH", "github", "branch", default="main")
GITHUB_API_URL = _env_or_setting("GITHUB_API_URL", "github", "api_url", default="https://api.github.com")

# Repository-relative targets for committed files
POSTS_DIR = _env_or_setting("POSTS_DIR", "paths", "posts", default="src/app/blogs")
IMAGES_DIR = _env_or_setting("IMAGES_DIR", "paths", "images", default="images")
CREATE_POST_DIR = _env_or_setting("CREATE_POST_DIR", "paths", "create_post", default="src/app/posts")

OPENAI_MODEL = _env_or_setting("OPENAI_MODEL", "openai", "model", default="gpt-3.5-turbo-instruct")
OPENAI_MAX_TOKENS = 1000
OPENAI_TEMPERATURE = 0.7

REQUEST_TIMEOUT = 20  # seconds, per upstream call
PORT = 4244
