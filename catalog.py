"""Catalog search and style filter over the product list from /api/products."""

import unicodedata
from typing import Callable, Iterable, List, Optional


def fold(text: str) -> str:
    """Lowercase and drop accents, so 'cit' finds 'Cítrico'."""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def matches_query(product: dict, query: str) -> bool:
    query = fold(query.strip())
    return query in fold(product.get("name") or "") or query in fold(product.get("description") or "")


def matches_style(product: dict, style: str) -> bool:
    # the style selector values are the descriptions themselves, compared as-is
    return not style or style in (product.get("description") or "")


class CatalogFilter:
    def __init__(self, products: Iterable[dict] = (), on_change: Optional[Callable[[List[dict]], None]] = None):
        self.on_change = on_change
        self.query = ""
        self.style = ""
        self.all_products: List[dict] = []
        self.filtered: List[dict] = []
        self.load(products)

    def load(self, products: Iterable[dict]) -> List[dict]:
        self.all_products = list(products)
        return self.apply_filters()

    def set_query(self, text: str) -> List[dict]:
        self.query = text or ""
        return self.apply_filters()

    def set_style(self, style: str) -> List[dict]:
        self.style = style or ""
        return self.apply_filters()

    def apply_filters(self) -> List[dict]:
        self.filtered = [
            p for p in self.all_products
            if matches_query(p, self.query) and matches_style(p, self.style)
        ]
        if self.on_change:
            self.on_change(list(self.filtered))
        return list(self.filtered)

    def styles(self) -> List[str]:
        """Distinct non-empty descriptions, in catalog order, for the style selector."""
        seen = []
        for p in self.all_products:
            description = p.get("description") or ""
            if description and description not in seen:
                seen.append(description)
        return seen
