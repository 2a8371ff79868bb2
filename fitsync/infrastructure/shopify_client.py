"""Shopify Admin GraphQL client.

Covers the handful of Admin API operations the catalog engine needs:
hydrating products, writing and reading metafields, metafield definitions,
category pages and product creation for ingestion.
"""

import json
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from fitsync.infrastructure.config import ShopConfig

logger = structlog.get_logger()


# ============================================================================
# GraphQL Documents
# ============================================================================

READ_PRODUCTS = """
query ReadProducts($ids: [ID!]!) {
  nodes(ids: $ids) {
    ... on Product {
      id
      handle
      title
      images(first: 1) { edges { node { src: url } } }
      priceRangeV2 { minVariantPrice { amount currencyCode } }
    }
  }
}
"""

METAFIELDS_SET = """
mutation SetMetafields($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields { id namespace key type }
    userErrors { field message }
  }
}
"""

READ_METAFIELD = """
query ReadMetafield($id: ID!, $namespace: String!, $key: String!) {
  product(id: $id) {
    metafield(namespace: $namespace, key: $key) { value type }
  }
}
"""

CREATE_METAFIELD_DEFINITION = """
mutation CreateDefinition($definition: MetafieldDefinitionInput!) {
  metafieldDefinitionCreate(definition: $definition) {
    createdDefinition { id namespace key }
    userErrors { field message code }
  }
}
"""

FIND_PAGE = """
query FindPages($q: String!) {
  pages(first: 1, query: $q) {
    edges { node { id handle title } }
  }
}
"""

PAGE_CREATE = """
mutation PageCreate($page: PageCreateInput!) {
  pageCreate(page: $page) {
    page { id handle title }
    userErrors { field message }
  }
}
"""

PAGE_UPDATE = """
mutation PageUpdate($id: ID!, $page: PageUpdateInput!) {
  pageUpdate(id: $id, page: $page) {
    page { id handle title }
    userErrors { field message }
  }
}
"""

PRODUCT_CREATE = """
mutation ProductCreate($input: ProductInput!) {
  productCreate(input: $input) {
    product { id handle title }
    userErrors { field message }
  }
}
"""


# ============================================================================
# Data Classes
# ============================================================================


@dataclass
class ProductSummary:
    """Minimal product attributes used to render result lists."""

    id: str
    handle: str | None
    title: str
    image: str | None
    price: str | None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> "ProductSummary":
        """Create from a ``nodes(ids:)`` Product node."""
        edges = (node.get("images") or {}).get("edges") or []
        image = edges[0]["node"].get("src") if edges else None
        min_price = ((node.get("priceRangeV2") or {}).get("minVariantPrice")) or {}
        price = None
        if min_price.get("amount") is not None:
            price = f"{min_price['amount']} {min_price.get('currencyCode', '')}".strip()
        return cls(
            id=node["id"],
            handle=node.get("handle"),
            title=node.get("title", ""),
            image=image,
            price=price,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "handle": self.handle,
            "title": self.title,
            "image": self.image,
            "price": self.price,
        }


@dataclass
class MetafieldInput:
    """One entry of a ``metafieldsSet`` call."""

    namespace: str
    key: str
    type: str
    value: str


class ShopifyClientError(Exception):
    """Error from a Shopify Admin API call."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


# ============================================================================
# Client
# ============================================================================


class ShopifyAdminClient:
    """HTTP client for the Shopify Admin GraphQL API.

    Example usage:
        client = ShopifyAdminClient(ShopConfig.from_settings(settings))
        products = await client.read_products(["gid://shopify/Product/1"])
        await client.close()
    """

    def __init__(self, config: ShopConfig) -> None:
        """Initialize Shopify client.

        Args:
            config: Shop endpoint and credentials.
        """
        self.config = config
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                headers={
                    "Content-Type": "application/json",
                    "X-Shopify-Access-Token": self.config.access_token,
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def graphql(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run an Admin GraphQL document.

        Args:
            query: GraphQL document.
            variables: Document variables.

        Returns:
            The ``data`` object of the response.

        Raises:
            ShopifyClientError: On transport errors, non-2xx statuses,
                non-JSON bodies or top-level GraphQL ``errors``.
        """
        if not self.config.is_configured:
            raise ShopifyClientError("Shopify shop or admin token is not configured")

        try:
            client = await self._get_client()
            response = await client.post(
                self.config.graphql_url,
                json={"query": query, "variables": variables or {}},
            )
        except httpx.RequestError as e:
            logger.error("Shopify request failed", error=str(e))
            raise ShopifyClientError(f"Request failed: {str(e)}") from e

        raw = response.text
        if response.status_code >= 400:
            raise ShopifyClientError(
                f"Admin GraphQL HTTP {response.status_code}: {raw[:600]}",
                response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ShopifyClientError(
                f"Admin GraphQL non-JSON response: {raw[:600]}", response.status_code
            ) from e
        if not isinstance(body, dict):
            raise ShopifyClientError(f"Admin GraphQL non-JSON response: {raw[:600]}")

        if body.get("errors"):
            raise ShopifyClientError(f"Shopify GraphQL errors: {json.dumps(body['errors'])}")

        return body.get("data") or {}

    @staticmethod
    def _raise_user_errors(operation: str, payload: dict[str, Any] | None) -> None:
        errors = (payload or {}).get("userErrors") or []
        if errors:
            raise ShopifyClientError(f"{operation} userErrors: {json.dumps(errors)}")

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def read_products(self, product_gids: list[str]) -> list[ProductSummary]:
        """Hydrate products, preserving input order.

        Unknown or deleted products are left out.
        """
        if not product_gids:
            return []
        data = await self.graphql(READ_PRODUCTS, {"ids": product_gids})
        return [
            ProductSummary.from_node(node)
            for node in data.get("nodes") or []
            if node and node.get("id")
        ]

    async def create_product(
        self,
        title: str,
        description_html: str | None = None,
        vendor: str | None = None,
        product_type: str = "Performance Parts",
        tags: list[str] | None = None,
    ) -> str:
        """Create a product and return its GID.

        Raises:
            ShopifyClientError: On API or user errors.
        """
        product_input: dict[str, Any] = {
            "title": title,
            "descriptionHtml": description_html or "",
            "productType": product_type,
            "tags": tags or [],
        }
        if vendor:
            product_input["vendor"] = vendor

        data = await self.graphql(PRODUCT_CREATE, {"input": product_input})
        payload = data.get("productCreate")
        self._raise_user_errors("productCreate", payload)
        product = (payload or {}).get("product") or {}
        if not product.get("id"):
            raise ShopifyClientError("productCreate returned no product")
        return product["id"]

    # ------------------------------------------------------------------
    # Metafields
    # ------------------------------------------------------------------

    async def write_metafields(
        self, owner_gid: str, metafields: list[MetafieldInput]
    ) -> None:
        """Overwrite metafields on a product in a single ``metafieldsSet`` call.

        Raises:
            ShopifyClientError: On API or user errors.
        """
        data = await self.graphql(
            METAFIELDS_SET,
            {
                "metafields": [
                    {
                        "ownerId": owner_gid,
                        "namespace": m.namespace,
                        "key": m.key,
                        "type": m.type,
                        "value": m.value,
                    }
                    for m in metafields
                ]
            },
        )
        self._raise_user_errors("metafieldsSet", data.get("metafieldsSet"))

    async def read_metafield(
        self, owner_gid: str, namespace: str, key: str
    ) -> str | None:
        """Read the raw value of one product metafield (None if unset)."""
        data = await self.graphql(
            READ_METAFIELD, {"id": owner_gid, "namespace": namespace, "key": key}
        )
        metafield = (data.get("product") or {}).get("metafield")
        return metafield.get("value") if metafield else None

    async def ensure_metafield_definition(
        self,
        namespace: str,
        key: str,
        type_name: str,
        name: str,
        description: str,
        owner_type: str = "PRODUCT",
    ) -> bool:
        """Create a storefront-visible metafield definition.

        Returns:
            True when created, False when it already existed.

        Raises:
            ShopifyClientError: On any other API or user error.
        """
        data = await self.graphql(
            CREATE_METAFIELD_DEFINITION,
            {
                "definition": {
                    "name": name,
                    "namespace": namespace,
                    "key": key,
                    "description": description,
                    "type": type_name,
                    "ownerType": owner_type,
                    "access": {"storefront": "PUBLIC_READ"},
                }
            },
        )
        payload = data.get("metafieldDefinitionCreate") or {}
        errors = payload.get("userErrors") or []
        if errors and all(
            e.get("code") == "TAKEN" or "taken" in (e.get("message") or "").lower()
            for e in errors
        ):
            return False
        self._raise_user_errors("metafieldDefinitionCreate", payload)
        return True

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def find_page_id_by_handle(self, handle: str) -> str | None:
        """Find an online-store page by exact handle."""
        data = await self.graphql(FIND_PAGE, {"q": f"handle:{handle}"})
        edges = (data.get("pages") or {}).get("edges") or []
        node = edges[0]["node"] if edges else None
        if node and node.get("handle") == handle:
            return node["id"]
        return None

    async def create_page(
        self, title: str, handle: str, template_suffix: str = "category", body: str = ""
    ) -> str:
        """Create a published page and return its GID."""
        data = await self.graphql(
            PAGE_CREATE,
            {
                "page": {
                    "title": title,
                    "handle": handle,
                    "isPublished": True,
                    "templateSuffix": template_suffix,
                    "body": body,
                }
            },
        )
        payload = data.get("pageCreate")
        self._raise_user_errors("pageCreate", payload)
        page = (payload or {}).get("page") or {}
        if not page.get("id"):
            raise ShopifyClientError("pageCreate returned no page")
        return page["id"]

    async def update_page(
        self, page_id: str, title: str, template_suffix: str = "category", body: str = ""
    ) -> str:
        """Update a page's title, template and body; returns its GID."""
        data = await self.graphql(
            PAGE_UPDATE,
            {
                "id": page_id,
                "page": {"title": title, "templateSuffix": template_suffix, "body": body},
            },
        )
        payload = data.get("pageUpdate")
        self._raise_user_errors("pageUpdate", payload)
        page = (payload or {}).get("page") or {}
        return page.get("id") or page_id
