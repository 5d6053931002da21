"""
Catalog capabilities: listing products, creating products and
generating product designs.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from storeagent.services.catalog import CatalogService
from storeagent.services.images import ImageGenerator
from storeagent.services.printful import PrintfulClient
from storeagent.tools.base import Capability, CapabilityName, object_schema

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_URL = "https://picsum.photos/800/800"


class GetProductsTool(Capability):
    def __init__(self, catalog: CatalogService) -> None:
        super().__init__(
            name=CapabilityName.GET_PRODUCTS,
            description="Fetch all products from the database",
        )
        self.catalog = catalog

    def run(self, arguments: Dict[str, Any], session_id: str) -> Any:
        return {"products": self.catalog.list_products()}


class CreateProductTool(Capability):
    """
    Create a product, optionally with an AI-generated design.

    When a fulfillment client is configured, a print-on-demand listing
    is created before the product row is saved, and its id is stored
    on the product.
    """

    def __init__(
        self,
        catalog: CatalogService,
        images: ImageGenerator,
        fulfillment: Optional[PrintfulClient] = None,
    ) -> None:
        super().__init__(
            name=CapabilityName.CREATE_PRODUCT,
            description="Create a new product with Printful integration",
            parameters=object_schema(
                {
                    "name": {"type": "string", "description": "Product name"},
                    "description": {"type": "string", "description": "Product description"},
                    "price": {"type": "number", "description": "Product price"},
                    "design_prompt": {
                        "type": "string",
                        "description": "Prompt for AI to generate design",
                    },
                },
                required=["name", "price"],
            ),
        )
        self.catalog = catalog
        self.images = images
        self.fulfillment = fulfillment

    def run(self, arguments: Dict[str, Any], session_id: str) -> Any:
        name = str(arguments["name"])
        description = str(arguments.get("description") or "")

        image_url = DEFAULT_IMAGE_URL
        if arguments.get("design_prompt"):
            image_url = self.images.generate_image(str(arguments["design_prompt"]))

        printful_product_id = None
        if self.fulfillment is not None:
            printful_product_id = self.fulfillment.create_listing(name, description, image_url)

        product = self.catalog.create_product(
            {
                "name": name,
                "description": description,
                "price": arguments["price"],
                "image_url": image_url,
                "printful_product_id": printful_product_id,
                "sku": f"KB-{int(time.time() * 1000)}",
            }
        )
        logger.info("Created product %s (%s)", product["id"], name)
        return {"success": True, "product": product}


class GenerateDesignTool(Capability):
    def __init__(self, images: ImageGenerator) -> None:
        super().__init__(
            name=CapabilityName.GENERATE_DESIGN,
            description="Generate a design/logo image using AI",
            parameters=object_schema(
                {"prompt": {"type": "string", "description": "Description of the design to generate"}},
                required=["prompt"],
            ),
        )
        self.images = images

    def run(self, arguments: Dict[str, Any], session_id: str) -> Any:
        return {"success": True, "image_url": self.images.generate_image(str(arguments["prompt"]))}
