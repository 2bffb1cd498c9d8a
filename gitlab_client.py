"""Клиент GitLab REST API и OAuth"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

import httpx

from config import settings
from exceptions import RemoteFailureError

logger = logging.getLogger(__name__)


class GitLabClient:
    """Синхронный клиент GitLab поверх httpx.

    Любая сетевая или HTTP ошибка превращается в RemoteFailureError без
    повторных попыток. transport позволяет подменить сеть в тестах.
    """

    def __init__(
            self,
            access_token: Optional[str] = None,
            api_url: Optional[str] = None,
            transport: Optional[httpx.BaseTransport] = None,
            timeout: Optional[float] = None
    ):
        self.api_url = (api_url or settings.GITLAB_API_URL).rstrip("/")
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
        self._client = httpx.Client(
            headers=headers,
            transport=transport,
            timeout=timeout or settings.GITLAB_TIMEOUT_SECONDS
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.api_url}{path}"
        try:
            resp = self._client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"GitLab request GET {path} failed: {e}")
            raise RemoteFailureError(f"GitLab request failed: {e}") from e

    @staticmethod
    def _project_path(project_id: str) -> str:
        return f"/projects/{quote(str(project_id), safe='')}"

    def exchange_code(self, code: str) -> str:
        """Обменять OAuth code на access token"""
        try:
            resp = self._client.post(
                settings.GITLAB_TOKEN_URL,
                data={
                    "client_id": settings.GITLAB_CLIENT_ID,
                    "client_secret": settings.GITLAB_CLIENT_SECRET,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": settings.GITLAB_REDIRECT_URI,
                },
            )
            resp.raise_for_status()
            return resp.json()["access_token"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning(f"GitLab OAuth token exchange failed: {e}")
            raise RemoteFailureError(f"GitLab OAuth failed: {e}") from e

    def get_current_user(self) -> Dict[str, Any]:
        return self._get("/user")

    def list_projects(self, simple: bool = False) -> List[Dict[str, Any]]:
        params = {"membership": "true"}
        if simple:
            params["simple"] = "true"
        return self._get("/projects", params=params)

    def list_issues(self, project_id: str, per_page: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._get(
            f"{self._project_path(project_id)}/issues",
            params={"per_page": per_page or settings.GITLAB_ISSUES_PER_PAGE}
        )

    def get_issue(self, project_id: str, issue_iid: int) -> Optional[Dict[str, Any]]:
        """Одна задача по iid. None, если GitLab её не нашёл"""
        url = f"{self.api_url}{self._project_path(project_id)}/issues/{issue_iid}"
        try:
            resp = self._client.get(url)
            if resp.status_code == httpx.codes.NOT_FOUND:
                return None
            resp.raise_for_status()
            return resp.json() or None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"GitLab issue lookup {project_id}#{issue_iid} failed: {e}")
            raise RemoteFailureError(f"GitLab request failed: {e}") from e


def build_authorize_url(state: str) -> str:
    """URL страницы авторизации GitLab, state - userId инициатора"""
    params = urlencode({
        "client_id": settings.GITLAB_CLIENT_ID,
        "redirect_uri": settings.GITLAB_REDIRECT_URI,
        "response_type": "code",
        "state": state,
        "scope": "read_user read_api read_repository",
    })
    return f"{settings.GITLAB_OAUTH_URL}?{params}"
