from typing import List, Optional, Protocol

from models import CommissionRecord, Order, Product


class OrderReader(Protocol):
    def get_order(self, order_id: int) -> Optional[Order]: ...

    def add_note(self, order_id: int, text: str) -> None: ...


class ProductCatalog(Protocol):
    def get_product(self, product_id: int) -> Optional[Product]: ...


class AffiliateDirectory(Protocol):
    def is_affiliate(self, user_id: int) -> bool: ...

    def get_parents(self, user_id: int) -> List[int]: ...


class AttributionResolver(Protocol):
    def get_referrer_for_order(self, order_id: int) -> Optional[int]: ...


class TagWriter(Protocol):
    def attach_tag(self, user_id: int, tag: str) -> None: ...


class ParentLinkWriter(Protocol):
    def assign_parent(self, user_id: int, parent_id: int) -> None: ...


class CommissionLedger(Protocol):
    def exists(self, order_id: int, affiliate_id: int) -> bool: ...

    def insert(self, record: CommissionRecord) -> None: ...
