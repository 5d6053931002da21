"""
Web search capability.

Performs live internet searches against a configurable search API
endpoint using the `requests` library. When no endpoint is configured
the capability answers with a stub result, so the model can still be
told that live search is unavailable.
"""

import os
from typing import Any, Dict, List, Optional

import requests

from storeagent.tools.base import Capability, CapabilityName, object_schema


class SearchWebTool(Capability):
    """
    Search the web through a configurable search API.

    The search API should accept query parameters `q` and
    `num_results`. API authentication can be provided via an
    environment variable.
    """

    def __init__(
        self,
        endpoint: str = "",
        api_key_env: str = "SEARCH_API_KEY",
        num_results: int = 5,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(
            name=CapabilityName.SEARCH_WEB,
            description="Search the web for information",
            parameters=object_schema(
                {"query": {"type": "string", "description": "Search query"}},
                required=["query"],
            ),
        )
        self.endpoint = endpoint
        self.api_key_env = api_key_env
        self.num_results = num_results
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "SearchWebTool":
        return cls(
            endpoint=cfg.get("endpoint") or os.getenv("SEARCH_API_ENDPOINT", ""),
            api_key_env=cfg.get("api_key_env", "SEARCH_API_KEY"),
            num_results=int(cfg.get("num_results", 5)),
            timeout=float(cfg.get("timeout", 15.0)),
        )

    def run(self, arguments: Dict[str, Any], session_id: str) -> Any:
        query = str(arguments["query"])
        if not self.endpoint:
            return {"results": f"Search results for: {query}"}

        headers: Dict[str, str] = {}
        api_key = os.getenv(self.api_key_env, "")
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        resp = self.session.get(
            self.endpoint,
            params={"q": query, "num_results": self.num_results},
            headers=headers,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError:
            return {"results": resp.text[:4000]}

        results = data.get("results") or data.get("data") or []
        lines: List[str] = [f"Search results for: {query}"]
        for idx, r in enumerate(results[: self.num_results], start=1):
            title = r.get("title") or r.get("name") or "Untitled"
            snippet = r.get("snippet") or r.get("description") or ""
            url = r.get("url") or r.get("link") or ""
            lines.append(f"{idx}. {title}")
            if snippet:
                lines.append(f"   {snippet}")
            if url:
                lines.append(f"   URL: {url}")
        return {"results": "\n".join(lines)}
