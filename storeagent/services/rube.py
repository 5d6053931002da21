"""
Workflow-automation collaborator (Rube.app).

Runs a named workflow with a JSON payload. The client fails closed:
when no API key is configured, or the API rejects the call, an explicit
`{"success": False, ...}` payload is returned rather than an exception.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class WorkflowClient:
    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.rube.app/v1",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "WorkflowClient":
        return cls(
            api_key=os.getenv(cfg.get("api_key_env", "RUBE_API_KEY"), ""),
            base_url=cfg.get("base_url", "https://api.rube.app/v1"),
            timeout=float(cfg.get("timeout", 30.0)),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def execute(self, workflow_name: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.configured:
            logger.warning("Rube.app API key not configured")
            return {"success": False, "message": "Rube.app not configured"}

        logger.info("Executing Rube workflow: %s", workflow_name)
        try:
            resp = self.session.post(
                f"{self.base_url}/workflows/execute",
                json={"workflow": workflow_name, "input": payload or {}},
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.HTTPError as exc:
            message = str(exc)
            try:
                message = exc.response.json().get("message") or message
            except (ValueError, AttributeError):
                pass
            logger.error("Rube.app workflow error: %s", message)
            return {"success": False, "error": message}
        except (requests.RequestException, ValueError) as exc:
            logger.error("Rube.app workflow error: %s", exc)
            return {"success": False, "error": str(exc)}

    # ------------------------------------------------------------ workflows

    def post_to_social_media(
        self, platform: str, content: str, image_url: Optional[str] = None
    ) -> Dict[str, Any]:
        return self.execute(
            "social_media_post",
            {"platform": platform, "content": content, "image_url": image_url},
        )

    def send_customer_email(self, to: str, subject: str, body: str) -> Dict[str, Any]:
        return self.execute("send_email", {"to": to, "subject": subject, "body": body})

    def sync_to_etsy_shop(self, product: Dict[str, Any]) -> Dict[str, Any]:
        return self.execute("etsy_sync", {"product": product})

    def create_shopify_product(self, product: Dict[str, Any]) -> Dict[str, Any]:
        return self.execute("shopify_create_product", {"product": product})
