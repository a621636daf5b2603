"""GitHub REST API client and heuristic repository analysis."""

import base64
import binascii
import logging
from typing import Any

import httpx

from studyforge.config import get_settings
from studyforge.schemas.github import KeyFile, RepoAnalysis

logger = logging.getLogger(__name__)
settings = get_settings()

# Root-level files worth reading, matched by substring of the file name
KEY_FILE_MARKERS = (
    "package.json",
    "requirements.txt",
    "app.js",
    "main.py",
    "index.js",
    "server.js",
)
MAX_KEY_FILES = 3
KEY_FILE_CONTENT_CHARS = 1000
SUMMARY_MAX_CHARS = 200

TECHNOLOGY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "react": ("react", "jsx", "create-react-app"),
    "node.js": ("node", "express", "npm"),
    "python": ("python", "django", "flask", "pip"),
    "mongodb": ("mongodb", "mongoose"),
    "postgresql": ("postgresql", "postgres", "pg"),
    "javascript": ("javascript", "js"),
    "typescript": ("typescript", "ts"),
    "html": ("html",),
    "css": ("css", "styling"),
    "tailwind": ("tailwind",),
    "bootstrap": ("bootstrap",),
}


class GitHubServiceError(Exception):
    """Raised when the GitHub API cannot be reached or rejects a request."""


# =============================================================================
# ANALYSIS HEURISTICS
# =============================================================================


def select_key_files(contents: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Pick up to MAX_KEY_FILES notable files from a root directory listing."""
    return [
        item
        for item in contents
        if item.get("type") == "file"
        and any(marker in item.get("name", "") for marker in KEY_FILE_MARKERS)
    ][:MAX_KEY_FILES]


def infer_file_purpose(file_name: str) -> str:
    if file_name == "package.json":
        return "Project dependencies and configuration"
    if file_name == "requirements.txt":
        return "Python dependencies"
    if "app." in file_name or "server." in file_name:
        return "Main application entry point"
    if "index." in file_name:
        return "Application entry point"
    return "Configuration or main application file"


def extract_technologies(key_files: list[KeyFile], readme: str) -> list[str]:
    """Technologies whose keywords appear in the key files or README."""
    content = (" ".join(f.content for f in key_files) + " " + readme).lower()
    return [
        tech
        for tech, keywords in TECHNOLOGY_KEYWORDS.items()
        if any(keyword in content for keyword in keywords)
    ]


def generate_summary(readme: str, key_files: list[KeyFile]) -> str:
    """First descriptive README line, or a sentence about the key files."""
    if readme:
        lines = [line for line in readme.split("\n") if line.strip()]
        for line in lines:
            if not line.startswith("#") and len(line) > 20:
                return line[:SUMMARY_MAX_CHARS]

    names = ", ".join(f.name for f in key_files)
    return f"Project with {len(key_files)} key files including {names}"


def infer_architecture(key_files: list[KeyFile], technologies: list[str]) -> str:
    has_backend = any(
        "server" in f.name or "app.js" in f.name or "main.py" in f.name for f in key_files
    )
    has_frontend = "react" in technologies or "html" in technologies

    if has_backend and has_frontend:
        return "Full-stack application"
    if has_backend:
        return "Backend API service"
    if has_frontend:
        return "Frontend application"
    return "Application project"


def _decode_content(payload: dict[str, Any]) -> str:
    """Decode the base64 `content` field of a contents/readme response."""
    try:
        raw = base64.b64decode(payload.get("content", ""))
    except (binascii.Error, ValueError):
        return ""
    return raw.decode("utf-8", errors="replace")


# =============================================================================
# CLIENT
# =============================================================================


class GitHubService:
    """
    Thin async wrapper over the GitHub REST API for one access token.

    Use as an async context manager so the HTTP client is closed:

        async with GitHubService(token) as github:
            repos = await github.fetch_user_repositories()
    """

    def __init__(self, token: str, *, client: httpx.AsyncClient | None = None):
        self.client = client or httpx.AsyncClient(
            base_url=settings.github_api_base_url,
            timeout=settings.github_timeout_seconds,
        )
        self.client.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )

    async def __aenter__(self) -> "GitHubService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.client.aclose()

    async def _get(self, path: str, **params) -> Any:
        response = await self.client.get(path, params=params or None)
        response.raise_for_status()
        return response.json()

    async def fetch_user_repositories(self) -> list[dict[str, Any]]:
        """
        List the authenticated user's repositories, most recently updated first.

        Returns plain dicts with repo_name, description, language and stars.
        """
        try:
            repos = await self._get(
                "/user/repos",
                visibility=settings.github_repo_visibility,
                sort="updated",
                per_page=settings.github_repos_per_page,
            )
        except httpx.HTTPError as e:
            logger.error("GitHub repository listing failed: %s", str(e))
            raise GitHubServiceError("Failed to fetch repositories") from e

        return [
            {
                "repo_name": repo["full_name"],
                "description": repo.get("description") or "",
                "language": repo.get("language") or "Unknown",
                "stars": repo.get("stargazers_count") or 0,
            }
            for repo in repos
        ]

    async def _get_readme(self, owner: str, repo: str) -> str:
        try:
            payload = await self._get(f"/repos/{owner}/{repo}/readme")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return ""
            raise
        return _decode_content(payload)

    async def _get_key_files(self, owner: str, repo: str, contents: list[dict[str, Any]]) -> list[KeyFile]:
        key_files = []
        for item in select_key_files(contents):
            name = item["name"]
            try:
                payload = await self._get(f"/repos/{owner}/{repo}/contents/{name}")
            except httpx.HTTPStatusError:
                logger.warning("Skipping unreadable file %s in %s/%s", name, owner, repo)
                continue
            if not isinstance(payload, dict) or "content" not in payload:
                continue
            key_files.append(
                KeyFile(
                    name=name,
                    content=_decode_content(payload)[:KEY_FILE_CONTENT_CHARS],
                    purpose=infer_file_purpose(name),
                )
            )
        return key_files

    async def analyze_repository(self, repo_name: str) -> RepoAnalysis:
        """
        Build a heuristic analysis from the root listing, README and key files.

        Raises:
            GitHubServiceError: if the repository cannot be read.
        """
        owner, _, repo = repo_name.partition("/")
        if not owner or not repo:
            raise GitHubServiceError(f"Invalid repository name: {repo_name}")

        try:
            contents = await self._get(f"/repos/{owner}/{repo}/contents/")
            readme = await self._get_readme(owner, repo)
            key_files = await self._get_key_files(
                owner, repo, contents if isinstance(contents, list) else []
            )
        except httpx.HTTPError as e:
            logger.error("GitHub analysis failed for %s: %s", repo_name, str(e))
            raise GitHubServiceError("Failed to analyze repository") from e

        technologies = extract_technologies(key_files, readme)
        return RepoAnalysis(
            summary=generate_summary(readme, key_files),
            technologies=technologies,
            key_files=key_files,
            architecture=infer_architecture(key_files, technologies),
        )
