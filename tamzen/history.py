"""
history.py - Font file contents from past releases.

Two sources share one interface:

  tags()                      -> release tag names
  files(revision)             -> top-level file names in a revision
  lookup(revision, filename)  -> raw text, or None if the file is absent

GitHistory reads a local checkout through the git executable;
GitHubHistory reads a GitHub repository through its REST API.
"""

import re
import subprocess
from pathlib import Path
from urllib.parse import quote

import requests

from .bdf import TEXT_ENCODING

API_URL = "https://api.github.com"
RAW_URL = "https://raw.githubusercontent.com"


class HistoryError(RuntimeError):
    """Raised when a revision cannot be read at all."""


def _to_int(part: str) -> int:
    match = re.match(r"\d+", part)
    return int(match.group()) if match else 0


def version_key(tag: str) -> list[int]:
    """'v1.10' -> [0, 1, 10]; non-numeric parts count as their leading digits or 0."""
    return [_to_int(part) for part in re.split(r"[v.]", tag)]


def newest_tag(tags) -> str:
    """Return the newest release tag, comparing version components numerically."""
    tags = list(tags)
    if not tags:
        raise HistoryError("No release tags found")
    return sorted(tags, key=version_key)[-1]


class GitHistory:
    def __init__(self, repo="."):
        self.repo = Path(repo)
        self._files: dict[str, list[str]] = {}

    def _git(self, *args: str) -> bytes:
        result = subprocess.run(
            ["git", "-C", str(self.repo), *args],
            capture_output=True,
        )
        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            raise HistoryError(f"git {' '.join(args)} failed: {stderr}")
        return result.stdout

    def tags(self) -> list[str]:
        return self._git("tag", "--list").decode().split()

    def files(self, revision: str) -> list[str]:
        """List the blobs at the root of `revision`'s tree."""
        if revision not in self._files:
            listing = self._git("ls-tree", "-z", revision).decode(errors="surrogateescape")
            names = []
            for entry in filter(None, listing.split("\0")):
                meta, name = entry.split("\t", 1)
                if meta.split()[1] == "blob":
                    names.append(name)
            self._files[revision] = names
        return self._files[revision]

    def has_revision(self, revision: str) -> bool:
        if revision in self._files:
            return True
        result = subprocess.run(
            ["git", "-C", str(self.repo), "rev-parse", "--verify", "-q", f"{revision}^{{tree}}"],
            capture_output=True,
        )
        return result.returncode == 0

    def lookup(self, revision: str, filename: str) -> str | None:
        """Return the file at `revision`, or None if either does not exist."""
        if not self.has_revision(revision) or filename not in self.files(revision):
            return None
        return self._git("cat-file", "blob", f"{revision}:{filename}").decode(TEXT_ENCODING)


class GitHubHistory:
    def __init__(self, owner_repo: str, token: str = ""):
        self.owner_repo = owner_repo
        self.token = token

    def _headers(self) -> dict:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def tags(self) -> list[str]:
        """Query all tag names, following pagination links."""
        url = f"{API_URL}/repos/{self.owner_repo}/tags?per_page=100"
        names = []
        while url:
            resp = requests.get(url, headers=self._headers(), timeout=30)
            resp.raise_for_status()
            names.extend(tag["name"] for tag in resp.json())
            url = resp.links.get("next", {}).get("url")
        return names

    def files(self, revision: str) -> list[str]:
        url = f"{API_URL}/repos/{self.owner_repo}/git/trees/{quote(revision, safe='')}"
        resp = requests.get(url, headers=self._headers(), timeout=30)
        if resp.status_code == 404:
            raise HistoryError(f"{self.owner_repo}: no revision {revision!r}")
        resp.raise_for_status()
        return [entry["path"] for entry in resp.json()["tree"] if entry["type"] == "blob"]

    def lookup(self, revision: str, filename: str) -> str | None:
        """
        Fetch a file's raw contents at `revision`.
        Returns None on 404 (absent file); other HTTP errors raise.
        """
        url = f"{RAW_URL}/{self.owner_repo}/{quote(revision)}/{quote(filename)}"
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        resp = requests.get(url, headers=headers, timeout=30)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.content.decode(TEXT_ENCODING)
