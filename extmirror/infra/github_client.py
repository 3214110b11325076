"""
GitHub API client infrastructure for extmirror.

Provides the four hosting operations the mirror needs:
- get a repository by owner and name
- create a repository (user or organization)
- list tags
- list commits

Handles rate limiting with exponential backoff. Failures that are not
"not found" surface as GitHubError so callers can decide how to degrade.
"""

import time
import logging
from dataclasses import dataclass
from typing import Optional, List, Dict, Any

import requests

logger = logging.getLogger(__name__)

TAG_REF_PREFIX = "refs/tags/"


class GitHubError(Exception):
    """A GitHub API call failed or the API was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RepositoryExistsError(GitHubError):
    """Repository creation was refused because the name is taken."""


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp
    used: int

    @property
    def minutes_until_reset(self) -> int:
        """Minutes until rate limit resets."""
        now = int(time.time())
        return max(0, (self.reset_time - now) // 60)

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


@dataclass
class GitHubRepo:
    """GitHub repository metadata."""
    owner: str
    name: str
    full_name: str
    ssh_url: str
    clone_url: str
    default_branch: str
    is_private: bool = False
    description: Optional[str] = None
    homepage: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'GitHubRepo':
        """Create from GitHub API response."""
        owner = data.get('owner', {})

        return cls(
            owner=owner.get('login', '') if isinstance(owner, dict) else str(owner),
            name=data.get('name', ''),
            full_name=data.get('full_name', ''),
            ssh_url=data.get('ssh_url', ''),
            clone_url=data.get('clone_url', ''),
            default_branch=data.get('default_branch', 'master'),
            is_private=data.get('private', False),
            description=data.get('description'),
            homepage=data.get('homepage'),
        )


class GitHubClient:
    """
    GitHub API client with rate limiting.

    Example:
        client = GitHubClient(token="...")
        repo = client.get_repo("owner", "news")
        if repo:
            print(client.list_tags("owner", "news"))
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = "https://api.github.com",
        timeout: float = 30,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token used for every request
            api_url: API root URL
            timeout: Per-request timeout in seconds
            max_retries: Maximum attempts for rate-limited or failed requests
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            session: requests session to use (created if None)
        """
        self.token = token
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'extmirror',
        })
        if token:
            self.session.headers['Authorization'] = f'token {token}'
        self._rate_limit_status: Optional[RateLimitStatus] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'GitHubClient':
        github = config.get('github', {})
        rate_limit = github.get('rate_limit', {})
        return cls(
            token=github.get('token') or None,
            api_url=github.get('api_url', 'https://api.github.com'),
            timeout=github.get('timeout_seconds', 30),
            max_retries=rate_limit.get('max_retries', 3),
            base_delay=rate_limit.get('base_delay_seconds', 1),
            max_delay=rate_limit.get('max_delay_seconds', 60),
        )

    @property
    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Rate limit status from the last API response, if any."""
        return self._rate_limit_status

    def _update_rate_limit_from_headers(self, headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('X-RateLimit-Remaining', -1))
            limit = int(headers.get('X-RateLimit-Limit', -1))
            reset_time = int(headers.get('X-RateLimit-Reset', 0))
            used = int(headers.get('X-RateLimit-Used', 0))
        except (ValueError, TypeError):
            return

        if remaining >= 0 and limit >= 0:
            self._rate_limit_status = RateLimitStatus(
                remaining=remaining,
                limit=limit,
                reset_time=reset_time,
                used=used
            )

            if self._rate_limit_status.is_low:
                logger.warning(
                    f"GitHub API rate limit low: {remaining}/{limit} remaining, "
                    f"resets in {self._rate_limit_status.minutes_until_reset} minutes"
                )

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        return response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0'

    def _backoff(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        url: Optional[str] = None
    ) -> requests.Response:
        """
        Send one API request, retrying on rate limiting and network errors.

        Raises:
            GitHubError: API unreachable or still rate limited after retries
        """
        url = url or f"{self.api_url}/{endpoint.lstrip('/')}"
        last_error = None

        for attempt in range(self.max_retries):
            try:
                response = self.session.request(
                    method, url, params=params, json=json_body, timeout=self.timeout
                )
            except requests.RequestException as e:
                last_error = str(e)
                logger.warning(f"GitHub API request failed: {e}")
                if attempt < self.max_retries - 1:
                    time.sleep(self._backoff(attempt))
                continue

            self._update_rate_limit_from_headers(response.headers)

            if not self._is_rate_limited(response):
                return response

            last_error = f"rate limited ({response.status_code})"
            reset_time = response.headers.get('X-RateLimit-Reset')
            if reset_time and reset_time.isdigit():
                wait_time = int(reset_time) - int(time.time())
                if 0 < wait_time < self.max_delay:
                    logger.info(f"Rate limited, waiting {wait_time}s")
                    time.sleep(wait_time)
                    continue

            delay = self._backoff(attempt)
            logger.info(f"Rate limited, waiting {delay}s (attempt {attempt + 1})")
            time.sleep(delay)

        raise GitHubError(f"GitHub API {method} {endpoint} failed: {last_error}")

    @staticmethod
    def _error_from(response: requests.Response, endpoint: str) -> GitHubError:
        try:
            message = response.json().get('message', '')
        except ValueError:
            message = response.text[:200]
        return GitHubError(
            f"GitHub API error {response.status_code} for {endpoint}: {message}",
            status_code=response.status_code
        )

    def _paginate(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Collect every page of a list endpoint. 404 and 409 yield an empty list."""
        params = dict(params or {})
        params.setdefault('per_page', 100)
        items: List[Dict[str, Any]] = []

        response = self._request('GET', endpoint, params=params)
        while True:
            # 409: repository is empty
            if response.status_code in (404, 409):
                return items
            if response.status_code != 200:
                raise self._error_from(response, endpoint)

            data = response.json()
            if isinstance(data, list):
                items.extend(data)
            elif isinstance(data, dict):
                items.append(data)

            next_url = response.links.get('next', {}).get('url')
            if not next_url:
                return items
            response = self._request('GET', endpoint, url=next_url)

    def get_repo(self, owner: str, name: str) -> Optional[GitHubRepo]:
        """
        Get repository metadata.

        Returns:
            GitHubRepo or None if the repository does not exist

        Raises:
            GitHubError: On any other API failure
        """
        endpoint = f"repos/{owner}/{name}"
        response = self._request('GET', endpoint)
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise self._error_from(response, endpoint)
        return GitHubRepo.from_api_response(response.json())

    def create_repo(
        self,
        name: str,
        description: str = "",
        homepage: Optional[str] = None,
        organization: Optional[str] = None,
        private: bool = False
    ) -> GitHubRepo:
        """
        Create a repository for the authenticated user or an organization.

        Raises:
            RepositoryExistsError: The name is already taken (HTTP 422)
            GitHubError: On any other API failure
        """
        endpoint = f"orgs/{organization}/repos" if organization else "user/repos"
        body = {
            'name': name,
            'description': description,
            'private': private,
            'has_issues': False,
            'has_wiki': False,
        }
        if homepage:
            body['homepage'] = homepage

        response = self._request('POST', endpoint, json_body=body)
        if response.status_code == 201:
            return GitHubRepo.from_api_response(response.json())

        error = self._error_from(response, endpoint)
        if response.status_code == 422 and self._name_taken(response):
            raise RepositoryExistsError(str(error), status_code=422)
        raise error

    @staticmethod
    def _name_taken(response: requests.Response) -> bool:
        """True if a 422 response says the repository name already exists."""
        try:
            data = response.json()
        except ValueError:
            return False
        messages = [data.get('message', '')]
        for detail in data.get('errors', []):
            if isinstance(detail, dict):
                messages.append(detail.get('message', ''))
            else:
                messages.append(str(detail))
        return any('already exists' in (m or '') for m in messages)

    def list_tags(self, owner: str, name: str) -> List[str]:
        """
        List tag names of a repository, prefix ``refs/tags/`` removed.

        Raises:
            GitHubError: On API failure
        """
        refs = self._paginate(f"repos/{owner}/{name}/git/matching-refs/tags")
        tags = []
        for ref in refs:
            ref_name = ref.get('ref', '')
            if ref_name.startswith(TAG_REF_PREFIX):
                tags.append(ref_name[len(TAG_REF_PREFIX):])
        return tags

    def list_commits(self, owner: str, name: str, limit: int = 1) -> List[Dict[str, Any]]:
        """
        List the most recent commits of a repository.

        Returns an empty list for an empty or missing repository.

        Raises:
            GitHubError: On any other API failure
        """
        endpoint = f"repos/{owner}/{name}/commits"
        response = self._request('GET', endpoint, params={'per_page': limit})
        if response.status_code in (404, 409):
            return []
        if response.status_code != 200:
            raise self._error_from(response, endpoint)
        data = response.json()
        return data[:limit] if isinstance(data, list) else []
