from __future__ import annotations

"""
EMBED_SUMMARY: start.gg OAuth2 authorization-code client and GraphQL queries (viewer, managed tournaments).
EMBED_TAGS: startgg, oauth, graphql, identity, tournaments
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from .config import Settings, get_settings
from .errors import MissingConfiguration, UpstreamUnavailable


logger = logging.getLogger("startgg")

VIEWER_QUERY = "query Viewer { currentUser { id slug email gamerTag } }"

MANAGED_TOURNAMENTS_QUERY = """
  query ManagedTournaments($page: Int!, $perPage: Int!) {
    currentUser {
      id
      tournaments(query: { page: $page, perPage: $perPage }) {
        nodes {
          id
          name
          slug
          startAt
          city
          addrState
          countryCode
        }
      }
    }
  }
"""


class StartGGClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.settings = settings
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.settings.startgg_timeout_seconds, transport=self.transport)

    def _require_oauth_settings(self) -> None:
        if not self.settings.startgg_client_id or not self.settings.startgg_redirect_uri:
            raise MissingConfiguration("start.gg OAuth client id / redirect uri are not configured")

    def build_authorize_url(self, state: str) -> str:
        self._require_oauth_settings()
        params = {
            "response_type": "code",
            "client_id": self.settings.startgg_client_id,
            "redirect_uri": self.settings.startgg_redirect_uri,
            "scope": self.settings.startgg_oauth_scope,
            "state": state,
        }
        return f"{self.settings.startgg_authorize_url}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        self._require_oauth_settings()
        if not self.settings.startgg_client_secret:
            raise MissingConfiguration("start.gg OAuth client secret is not configured")
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.settings.startgg_redirect_uri,
        }
        try:
            with self._client() as client:
                resp = client.post(
                    self.settings.startgg_token_url,
                    data=data,
                    auth=(self.settings.startgg_client_id or "", self.settings.startgg_client_secret),
                )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Token exchange failed: {exc}") from exc
        if resp.status_code >= 400:
            logger.warning("token exchange rejected status=%s body=%s", resp.status_code, resp.text[:200])
            raise UpstreamUnavailable("Token exchange failed", upstream_status=resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamUnavailable("Token response was not JSON") from exc

    def _graphql(self, access_token: str, query: str, variables: Optional[dict] = None) -> httpx.Response:
        headers = {"Authorization": f"Bearer {access_token}"}
        payload: Dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = variables
        with self._client() as client:
            return client.post(self.settings.startgg_graphql_url, headers=headers, json=payload)

    def fetch_viewer(self, access_token: str) -> Optional[Dict[str, Any]]:
        # Best effort: a missing profile never fails the login
        try:
            resp = self._graphql(access_token, VIEWER_QUERY)
            if resp.status_code >= 400:
                return None
            viewer = ((resp.json() or {}).get("data") or {}).get("currentUser")
        except (httpx.HTTPError, ValueError) as exc:
            logger.info("viewer lookup failed: %s", exc)
            return None
        if not viewer:
            return None
        return {key: viewer.get(key) for key in ("id", "slug", "email", "gamerTag")}

    def fetch_managed_tournaments(self, access_token: str, page: int = 1, per_page: int = 50) -> List[Dict[str, Any]]:
        try:
            resp = self._graphql(
                access_token, MANAGED_TOURNAMENTS_QUERY, {"page": page, "perPage": per_page}
            )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"start.gg API call failed: {exc}") from exc
        if resp.status_code >= 400:
            raise UpstreamUnavailable("start.gg API call failed", upstream_status=resp.status_code)
        try:
            data = resp.json() or {}
        except ValueError as exc:
            raise UpstreamUnavailable("start.gg API returned a non-JSON body") from exc
        if data.get("errors"):
            raise UpstreamUnavailable("start.gg API returned errors")
        current_user = (data.get("data") or {}).get("currentUser") or {}
        return ((current_user.get("tournaments") or {}).get("nodes")) or []


def get_startgg_client() -> StartGGClient:
    return StartGGClient(get_settings())
