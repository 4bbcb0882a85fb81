import logging
from typing import Any, Dict, Optional

import requests
from requests.exceptions import RequestException

from ..domain.interfaces import IBumpPullRequestFetcher
from ..application.errors import EnrichmentFetchError

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"

class GitHubBumpPullRequestFetcher(IBumpPullRequestFetcher):

    def __init__(self, token: str, url: str = GITHUB_GRAPHQL_URL, timeout: float = 30, session: Optional[requests.Session] = None):
        self.token = token
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _post(self, query: str) -> Dict[str, Any]:
        try:
            response = self.session.post(
                self.url,
                json={"query": query},
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except RequestException as error:
            raise EnrichmentFetchError(f"Richiesta GraphQL fallita: {error}") from error
        except ValueError as error:
            raise EnrichmentFetchError("Risposta GraphQL non in formato JSON") from error

    def count(self, query: str) -> int:
        payload = self._post(query)
        if not isinstance(payload, dict):
            raise EnrichmentFetchError("Risposta GraphQL non è un oggetto")

        if payload.get("errors"):
            messages = ", ".join(str(err.get("message", err)) for err in payload["errors"] if isinstance(err, dict))
            raise EnrichmentFetchError(f"Errori GraphQL: {messages or payload['errors']}")

        try:
            nodes = payload["data"]["search"]["nodes"]
        except (KeyError, TypeError) as error:
            raise EnrichmentFetchError("Risposta GraphQL priva di data.search.nodes") from error

        if not isinstance(nodes, list):
            raise EnrichmentFetchError("data.search.nodes non è una lista")

        self.logger.debug(f"PR di bump trovate: {len(nodes)}")
        return len(nodes)
