"""GitHub contents API client — commits posts and images to the blog repository."""

import base64
import logging
import re
from urllib.parse import quote

import requests

from config import (
    CREATE_POST_DIR,
    GITHUB_API_URL,
    GITHUB_BRANCH,
    GITHUB_OWNER,
    GITHUB_REPO,
    IMAGES_DIR,
    POSTS_DIR,
    REQUEST_TIMEOUT,
    get_github_token,
)
from services.document import Attachment
from services.errors import TransportError, UpstreamAuthError, ValidationError, from_status

log = logging.getLogger(__name__)


def validate_file_name(name: str, label: str = "fileName") -> str:
    """Reject empty names and anything that could escape the target directory."""
    name = (name or "").strip()
    if not name:
        raise ValidationError(f"{label} is required")
    if name.startswith(("/", "~")) or re.match(r"^[A-Za-z]:", name):
        raise ValidationError(f"{label} must be a relative name", details=name)
    if "\\" in name or "\x00" in name:
        raise ValidationError(f"{label} contains invalid characters", details=name)
    if any(part in ("..", ".") for part in name.split("/")):
        raise ValidationError("Path traversal detected", details=name)
    return name


def slugify(title: str) -> str:
    """Lowercase and hyphenate whitespace runs."""
    return re.sub(r"\s+", "-", title.strip().lower())


class GitHubStore:
    """Save gateway: create-or-update files on one repository branch."""

    def __init__(
        self,
        token: str,
        owner: str = GITHUB_OWNER,
        repo: str = GITHUB_REPO,
        branch: str = GITHUB_BRANCH,
        posts_dir: str = POSTS_DIR,
        images_dir: str = IMAGES_DIR,
        api_url: str = GITHUB_API_URL,
        session: requests.Session | None = None,
    ):
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.posts_dir = posts_dir.strip("/")
        self.images_dir = images_dir.strip("/")
        self.api_url = api_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "nightfall-cms/1.0",
            }
        )

    def _contents_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{quote(path)}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self._session.request(
                method, self._contents_url(path), timeout=REQUEST_TIMEOUT, **kwargs
            )
        except requests.exceptions.Timeout as e:
            log.warning("GitHub %s %s timed out", method, path)
            raise TransportError("GitHub request timed out", details=path) from e
        except requests.exceptions.RequestException as e:
            log.warning("GitHub %s %s failed: %s", method, path, e)
            raise TransportError("Could not reach GitHub", details=str(e)) from e

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            return resp.json().get("message", "")
        except ValueError:
            return resp.text[:300]

    def get_file_sha(self, path: str) -> str | None:
        """Blob sha of an existing file, or None when the file does not exist yet."""
        resp = self._request("GET", path, params={"ref": self.branch})
        if resp.status_code == 200:
            return resp.json().get("sha")
        if resp.status_code == 404:
            return None
        raise from_status(resp.status_code, "Failed to look up file", details=self._error_message(resp))

    def put_file(self, path: str, content: bytes, message: str) -> dict:
        """Create or update one file. Returns the contents API response body."""
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        sha = self.get_file_sha(path)
        if sha:
            payload["sha"] = sha

        resp = self._request("PUT", path, json=payload)
        if resp.status_code not in (200, 201):
            detail = self._error_message(resp)
            log.warning("GitHub commit of %s failed (%s): %s", path, resp.status_code, detail)
            raise from_status(resp.status_code, "Error saving file", details=detail)

        log.info("Committed %s to %s/%s@%s", path, self.owner, self.repo, self.branch)
        return resp.json()

    def save_image(self, file_name: str, image: Attachment) -> str:
        """Commit an image as <images_dir>/<file_name>-<image name>. Returns its URL."""
        image_name = validate_file_name(image.name, label="image name").replace("/", "-")
        path = f"{self.images_dir}/{file_name}-{image_name}"
        result = self.put_file(path, image.data, f"Add image for {file_name}")
        content = result.get("content") or {}
        return content.get("download_url") or content.get("html_url", "")

    def save_post(self, document: str, file_name: str, image: Attachment | None = None) -> dict:
        """Commit <posts_dir>/<file_name>.mdx, committing the image first when given.

        The image and the post are separate commits; a failed post commit leaves
        an already committed image in place.
        """
        file_name = validate_file_name(file_name)

        image_url = None
        if image is not None:
            image_url = self.save_image(file_name, image)

        path = f"{self.posts_dir}/{file_name}.mdx"
        result = self.put_file(path, document.encode("utf-8"), f"Update {file_name}.mdx")
        content = result.get("content") or {}
        commit = result.get("commit") or {}
        response = {
            "message": "File saved successfully",
            "sha": content.get("sha"),
            "url": content.get("html_url"),
            "commit": commit.get("sha"),
        }
        if image_url is not None:
            response["imageUrl"] = image_url
        return response

    def create_post(self, title: str, content: str, directory: str = CREATE_POST_DIR) -> dict:
        """Commit a plain Markdown post at <directory>/<slug>.md."""
        if not title or not title.strip():
            raise ValidationError("title is required")
        slug = validate_file_name(slugify(title), label="title")
        path = f"{directory.strip('/')}/{slug}.md"
        self.put_file(path, (content or "").encode("utf-8"), f"Add new post: {title}")
        return {"success": True, "path": path}


def build_github_store() -> GitHubStore:
    """Construct a store from configuration. Raises if no token is configured."""
    token = get_github_token()
    if not token:
        raise UpstreamAuthError("GITHUB_TOKEN is not configured", status=500)
    return GitHubStore(token)
