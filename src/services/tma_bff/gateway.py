# src/services/tma_bff/gateway.py
"""
Типизированная обёртка над SaleorClient.

SaleorClient.execute возвращает нетипизированный словарь. Здесь на каждую
операцию свой GraphQL документ и своя pydantic модель ответа, так что
остальной код работает только с типами ниже. Имена полей Saleor сохранены.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from src.common.exceptions import ExternalError
from src.infra.saleor_client import SaleorClient


# =============================================================================
# УЗЛЫ SALEOR
# =============================================================================

class SaleorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SaleorImage(SaleorModel):
    url: str = ""


class SaleorMeta(SaleorModel):
    key: str
    value: str = ""


class RestaurantNode(SaleorModel):
    """Категория Saleor, которая играет роль ресторана."""
    id: str
    name: str = ""
    description: str | None = None
    background_image: SaleorImage | None = Field(default=None, alias="backgroundImage")
    metadata: list[SaleorMeta] = Field(default_factory=list)


class CategoryNode(SaleorModel):
    """Дочерняя категория (раздел меню)."""
    id: str
    name: str = ""
    description: str | None = None
    background_image: SaleorImage | None = Field(default=None, alias="backgroundImage")


class Gross(SaleorModel):
    amount: Decimal | None = None
    currency: str | None = None


class Price(SaleorModel):
    gross: Gross = Field(default_factory=Gross)


class Pricing(SaleorModel):
    price: Price | None = None


class VariantNode(SaleorModel):
    id: str
    pricing: Pricing | None = None


class ProductNode(SaleorModel):
    id: str
    name: str = ""
    description: str | None = None
    thumbnail: SaleorImage | None = None
    variants: list[VariantNode] | None = None


NodeT = TypeVar("NodeT")


class Edge(SaleorModel, Generic[NodeT]):
    node: NodeT


class Connection(SaleorModel, Generic[NodeT]):
    edges: list[Edge[NodeT]] = Field(default_factory=list)

    @property
    def nodes(self) -> list[NodeT]:
        return [edge.node for edge in self.edges]


class ParentRef(SaleorModel):
    id: str


class CategoryWithParent(SaleorModel):
    id: str = ""
    parent: ParentRef | None = None


class MutationError(SaleorModel):
    field: str | None = None
    message: str = ""
    code: str | None = None


class OrderRef(SaleorModel):
    id: str
    status: str = ""


class OrderMutationPayload(SaleorModel):
    """Общая форма ответа draftOrderCreate / orderLinesCreate / draftOrderComplete."""
    order: OrderRef | None = None
    errors: list[MutationError] = Field(default_factory=list)

    def first_error(self) -> str | None:
        return self.errors[0].message if self.errors else None


# =============================================================================
# ОТВЕТЫ ОПЕРАЦИЙ
# =============================================================================

class _ChildrenOfRestaurants(SaleorModel):
    children: Connection[RestaurantNode] = Field(default_factory=Connection[RestaurantNode])


class RestaurantsFromRootData(SaleorModel):
    category: _ChildrenOfRestaurants | None = None


class RestaurantsTopLevelData(SaleorModel):
    categories: Connection[RestaurantNode] = Field(default_factory=Connection[RestaurantNode])


class _ChildrenOfCategories(SaleorModel):
    id: str = ""
    children: Connection[CategoryNode] = Field(default_factory=Connection[CategoryNode])


class RestaurantCategoriesData(SaleorModel):
    category: _ChildrenOfCategories | None = None


class CategoryParentData(SaleorModel):
    category: CategoryWithParent | None = None


class CategoryDishesData(SaleorModel):
    products: Connection[ProductNode] = Field(default_factory=Connection[ProductNode])


class DraftOrderCreateData(SaleorModel):
    payload: OrderMutationPayload = Field(alias="draftOrderCreate")


class OrderLinesCreateData(SaleorModel):
    payload: OrderMutationPayload = Field(alias="orderLinesCreate")


class DraftOrderCompleteData(SaleorModel):
    payload: OrderMutationPayload = Field(alias="draftOrderComplete")


# =============================================================================
# GRAPHQL ДОКУМЕНТЫ
# =============================================================================

RESTAURANTS_FROM_ROOT = """
query RestaurantsFromRoot($id: ID!, $first: Int!) {
  category(id: $id) {
    children(first: $first) {
      edges {
        node {
          id
          name
          description
          backgroundImage { url }
          metadata { key value }
        }
      }
    }
  }
}
"""

RESTAURANTS_TOP_LEVEL = """
query RestaurantsTopLevel($first: Int!, $level: Int!, $filter: CategoryFilterInput) {
  categories(first: $first, level: $level, filter: $filter) {
    edges {
      node {
        id
        name
        description
        backgroundImage { url }
        metadata { key value }
      }
    }
  }
}
"""

RESTAURANT_CATEGORIES = """
query RestaurantCategories($id: ID!, $first: Int!) {
  category(id: $id) {
    id
    children(first: $first) {
      edges {
        node {
          id
          name
          description
          backgroundImage { url }
        }
      }
    }
  }
}
"""

CATEGORY_PARENT = """
query CategoryParent($id: ID!) {
  category(id: $id) {
    id
    parent { id }
  }
}
"""

CATEGORY_DISHES = """
query CategoryDishes($first: Int!, $channel: String!, $categoryId: [ID!]) {
  products(first: $first, channel: $channel, filter: { categories: $categoryId }) {
    edges {
      node {
        id
        name
        description
        thumbnail(size: 512) { url }
        variants {
          id
          pricing {
            price {
              gross { amount currency }
            }
          }
        }
      }
    }
  }
}
"""

DRAFT_ORDER_CREATE = """
mutation CreateDraft($input: DraftOrderCreateInput!) {
  draftOrderCreate(input: $input) {
    order { id status }
    errors { field message code }
  }
}
"""

ORDER_LINES_CREATE = """
mutation AddLines($id: ID!, $input: [OrderLineCreateInput!]!) {
  orderLinesCreate(id: $id, input: $input) {
    order { id status }
    errors { field message code }
  }
}
"""

DRAFT_ORDER_COMPLETE = """
mutation CompleteDraft($id: ID!) {
  draftOrderComplete(id: $id) {
    order { id status }
    errors { field message code }
  }
}
"""


ModelT = TypeVar("ModelT", bound=BaseModel)


class CatalogGateway:
    """Операции Saleor, нужные BFF, с типизированными ответами."""

    def __init__(self, client: SaleorClient, page_size: int = 100) -> None:
        self.client = client
        self.page_size = page_size

    async def _call(
        self,
        operation: str,
        query: str,
        variables: dict[str, Any],
        model: type[ModelT],
    ) -> ModelT:
        data = await self.client.execute(operation, query, variables)
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise ExternalError(operation, f"decode graphql data: {e}") from e

    # === КАТАЛОГ ===

    async def restaurants_from_root(self, root_id: str) -> list[RestaurantNode] | None:
        """Дочерние категории корня. None — корневая категория не найдена."""
        resp = await self._call(
            "restaurantsFromRoot",
            RESTAURANTS_FROM_ROOT,
            {"id": root_id, "first": self.page_size},
            RestaurantsFromRootData,
        )
        if resp.category is None:
            return None
        return resp.category.children.nodes

    async def restaurants_top_level(self, search: str | None = None) -> list[RestaurantNode]:
        """Категории уровня 0, с необязательным поиском на стороне Saleor."""
        search_filter = {"search": search} if search and search.strip() else None
        resp = await self._call(
            "restaurantsTopLevel",
            RESTAURANTS_TOP_LEVEL,
            {"first": self.page_size, "level": 0, "filter": search_filter},
            RestaurantsTopLevelData,
        )
        return resp.categories.nodes

    async def category_children(self, category_id: str) -> list[CategoryNode] | None:
        """Дочерние категории. None — категория не найдена."""
        resp = await self._call(
            "restaurantCategories",
            RESTAURANT_CATEGORIES,
            {"id": category_id, "first": self.page_size},
            RestaurantCategoriesData,
        )
        if resp.category is None:
            return None
        return resp.category.children.nodes

    async def category_parent(self, category_id: str) -> CategoryWithParent | None:
        """Категория со ссылкой на прямого родителя. None — не найдена."""
        resp = await self._call(
            "categoryParent",
            CATEGORY_PARENT,
            {"id": category_id},
            CategoryParentData,
        )
        return resp.category

    async def products_in_category(self, category_id: str, channel_slug: str) -> list[ProductNode]:
        """Товары категории в канале продаж."""
        resp = await self._call(
            "categoryDishes",
            CATEGORY_DISHES,
            {"first": self.page_size, "channel": channel_slug, "categoryId": [category_id]},
            CategoryDishesData,
        )
        return resp.products.nodes

    # === ЗАКАЗ ===

    async def draft_order_create(self, order_input: dict[str, Any]) -> OrderMutationPayload:
        resp = await self._call(
            "draftOrderCreate",
            DRAFT_ORDER_CREATE,
            {"input": order_input},
            DraftOrderCreateData,
        )
        return resp.payload

    async def order_lines_create(
        self,
        order_id: str,
        lines: list[dict[str, Any]],
    ) -> OrderMutationPayload:
        resp = await self._call(
            "orderLinesCreate",
            ORDER_LINES_CREATE,
            {"id": order_id, "input": lines},
            OrderLinesCreateData,
        )
        return resp.payload

    async def draft_order_complete(self, order_id: str) -> OrderMutationPayload:
        resp = await self._call(
            "draftOrderComplete",
            DRAFT_ORDER_COMPLETE,
            {"id": order_id},
            DraftOrderCompleteData,
        )
        return resp.payload
