"""
Print-on-demand fulfillment collaborator (Printful).

Creates a sync product for a new catalog item: the design file is
uploaded first, then a product with one variant per default size is
created against it.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests

from storeagent.errors import FulfillmentError

logger = logging.getLogger(__name__)

# Bella+Canvas 3001 unisex tee, white S/M/L
DEFAULT_VARIANT_IDS = [4012, 4013, 4014]
DEFAULT_RETAIL_PRICE = "24.99"


class PrintfulClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.printful.com",
        timeout: float = 30.0,
        variant_ids: Optional[List[int]] = None,
        retail_price: str = DEFAULT_RETAIL_PRICE,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.variant_ids = variant_ids or list(DEFAULT_VARIANT_IDS)
        self.retail_price = retail_price
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Optional["PrintfulClient"]:
        """
        Build a client, or return None when no API key is available.

        Without a client the catalog creates products without a
        fulfillment listing.
        """
        api_key = os.getenv(cfg.get("api_key_env", "PRINTFUL_API_KEY"), "")
        if not api_key:
            logger.warning("Printful API key not configured; fulfillment listings disabled")
            return None
        return cls(
            api_key=api_key,
            base_url=cfg.get("base_url", "https://api.printful.com"),
            timeout=float(cfg.get("timeout", 30.0)),
            variant_ids=cfg.get("variant_ids"),
            retail_price=str(cfg.get("retail_price", DEFAULT_RETAIL_PRICE)),
        )

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.session.post(
                f"{self.base_url}{path}",
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()["result"]
        except requests.HTTPError as exc:
            message = _error_message(exc.response) or str(exc)
            logger.error("Printful API error: %s", message)
            raise FulfillmentError(f"Printful API error: {message}") from exc
        except (requests.RequestException, ValueError, KeyError) as exc:
            logger.error("Printful API error: %s", exc)
            raise FulfillmentError(f"Printful API error: {exc}") from exc

    def create_listing(self, name: str, description: str, image_url: str) -> str:
        """Create the sync product and return its Printful id as a string."""
        logger.info("Creating Printful listing for %r", name)
        upload = self._post(
            "/files",
            {"url": image_url, "filename": f"{name.replace(' ', '_')}.png"},
        )
        file_id = upload["id"]
        product = self._post(
            "/store/products",
            {
                "sync_product": {"name": name, "thumbnail": image_url},
                "sync_variants": [
                    {
                        "retail_price": self.retail_price,
                        "variant_id": variant_id,
                        "files": [{"id": file_id, "type": "default"}],
                    }
                    for variant_id in self.variant_ids
                ],
            },
        )
        return str(product["id"])


def _error_message(response: Optional[requests.Response]) -> Optional[str]:
    if response is None:
        return None
    try:
        return response.json().get("error", {}).get("message")
    except (ValueError, AttributeError):
        return None
