"""GitHub release assets used as media storage."""

import logging
import os
import re
import uuid
from typing import Optional

import requests

from .config import config

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
UPLOADS_URL = "https://uploads.github.com"

class AssetStoreError(Exception):
    """Raised when a file cannot be stored."""

def make_asset_name(original_name: str, category: str) -> str:
    """Build a unique, URL safe asset name like `songs_My_Song_1a2b3c4d.mp3`."""
    base, ext = os.path.splitext(os.path.basename(original_name))
    sanitized = re.sub(r"[^a-zA-Z0-9\-_]", "_", base) or "file"
    return f"{category}_{sanitized}_{uuid.uuid4().hex[:8]}{ext}"

class AssetStore:
    """Uploads audio files as assets of one GitHub release."""

    def __init__(self, token: str = None, owner: str = None, repo: str = None,
                 release_tag: str = None, session: Optional[requests.Session] = None):
        self.token = token if token is not None else config.GITHUB_TOKEN
        self.owner = owner or config.GITHUB_OWNER
        self.repo = repo or config.GITHUB_REPO
        self.release_tag = release_tag or config.GITHUB_RELEASE_TAG
        self.session = session or requests.Session()
        self.timeout = 60

    @property
    def headers(self):
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def download_url(self, name: str) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/releases/download/{self.release_tag}/{name}"

    def get_release(self) -> Optional[dict]:
        """Fetch the configured release, or None if it does not exist."""
        url = f"{API_URL}/repos/{self.owner}/{self.repo}/releases/tags/{self.release_tag}"
        response = self.session.get(url, headers=self.headers, timeout=self.timeout)
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return response.json()

    def ensure_release(self) -> dict:
        """Create the release tag used for storage if it is missing."""
        release = self.get_release()
        if release:
            logger.info(f"✅ Release {self.release_tag} exists")
            return release

        logger.info(f"📦 Creating release {self.release_tag}...")
        response = self.session.post(
            f"{API_URL}/repos/{self.owner}/{self.repo}/releases",
            headers=self.headers,
            json={
                "tag_name": self.release_tag,
                "name": f"Media Files {self.release_tag}",
                "body": "Radio media storage",
                "draft": False,
                "prerelease": False,
            },
            timeout=self.timeout,
        )
        self._raise_for_status(response)
        logger.info("✅ Release created")
        return response.json()

    def upload(self, data: bytes, original_name: str, category: str = "songs",
               content_type: str = "audio/mpeg") -> str:
        """Store `data` and return its public download URL."""
        name = make_asset_name(original_name, category)
        logger.info(f"📤 Uploading {name} to GitHub...")

        try:
            release = self.get_release()
        except requests.RequestException as e:
            raise AssetStoreError(f"GitHub error: {e}") from e
        if not release:
            raise AssetStoreError(f'Release "{self.release_tag}" does not exist')

        headers = dict(self.headers)
        headers["Content-Type"] = content_type
        try:
            response = self.session.post(
                f"{UPLOADS_URL}/repos/{self.owner}/{self.repo}/releases/{release['id']}/assets",
                params={"name": name},
                headers=headers,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AssetStoreError(f"GitHub error: {e}") from e
        self._raise_for_status(response)

        url = self.download_url(name)
        logger.info(f"✅ Uploaded: {url}")
        return url

    @staticmethod
    def _raise_for_status(response):
        if response.status_code == 401:
            raise AssetStoreError("Invalid GitHub token")
        if response.status_code == 404:
            raise AssetStoreError("GitHub repository or release not found")
        if response.status_code >= 400:
            raise AssetStoreError(f"GitHub error {response.status_code}: {response.text[:200]}")
