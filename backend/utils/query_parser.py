"""
Deterministic Query Parser
Extracts category, color, material, gender, brand, budget, size and requested
result count from a shopping message using keyword lists and regex patterns.
Always available; the LLM extractor only ever replaces its output wholesale.
"""

import re
from typing import Any, Dict, List, Optional

from models.schemas import Budget, ExtractionResult, Gender, QueryFilters, QueryMeta


HEURISTIC_SOURCE = "heuristic"


class QueryParser:
    """Parse shopping messages into QueryFilters deterministically"""

    def __init__(self):
        # First entry contained in the message wins, so order matters
        self.color_keywords = [
            'red', 'blue', 'beige', 'black', 'white', 'green', 'olive',
            'ivory', 'teal', 'saffron', 'pink', 'yellow', 'orange', 'brown',
        ]

        self.category_keywords = [
            'kurta', 'sneakers', 'shoes', 'shirt', 'pants', 'jeans',
            'saree', 'dress', 'top', 'jacket',
        ]

        self.material_keywords = [
            'cotton', 'linen', 'khaadi', 'khadi', 'silk', 'denim', 'modal',
            'suede', 'mesh', 'leather', 'knit', 'chanderi',
        ]

        # Checked in this order: men, women, unisex
        self.gender_keywords = {
            Gender.MEN.value: ['men', 'male', 'guy'],
            Gender.WOMEN.value: ['women', 'female', 'woman', 'lady'],
            Gender.UNISEX.value: ['unisex'],
        }

        # Not after an apostrophe, so "men's" does not yield size S
        self.size_pattern = re.compile(r"(?<!['’])\b(xxl|xl|xs|s|m|l|uk\d+)\b", re.IGNORECASE)

        # Amounts accept optional currency markers and thousands separators
        currency = r'(?:₹|rs\.?|inr|\$)?\s*'
        amount = currency + r'(\d[\d,]*(?:\.\d+)?)'
        # Ranges need price-sized numbers so "between 3 and 4 options" is not a budget
        price_amount = currency + r'(\d{1,3}(?:,\d{3})+|\d{3,})'
        self.price_patterns = [
            # "between 1000 and 2000", "from 1000 to 2000"
            (re.compile(r'(?:between|from)\s*' + price_amount + r'\s*(?:and|to|-)\s*' + price_amount), 'range'),
            # "1000 to 2000", "₹1000-₹2000"
            (re.compile(price_amount + r'\s*(?:to|-)\s*' + price_amount), 'range'),
            # "under ₹2000", "less than 1500", "up to 999", "max 3000"
            (re.compile(r'(?:under|below|less\s+than|upto|up\s+to|maximum|max)\s*' + amount), 'max'),
        ]

        self.brand_pattern = re.compile(r'\bby\s+([a-z0-9][a-z0-9\s]*)')
        self.quantity_pattern = re.compile(r'(\d+)\s*(?:options|choices|pairs|items)')

    def parse_query(self, query: str) -> ExtractionResult:
        """
        Parse a message and extract all structured parameters.

        Every field is optional; a field the message does not mention stays
        None, which downstream means "no constraint".
        """
        query_lower = (query or '').lower().strip()

        filters = QueryFilters(
            category=self._find_keyword(query_lower, self.category_keywords),
            color=self._find_keyword(query_lower, self.color_keywords),
            material=self._find_keyword(query_lower, self.material_keywords),
            gender=self._detect_gender(query_lower),
            brand=self._extract_brand(query_lower),
            budget=self._extract_budget(query_lower),
            size=self._extract_sizes(query_lower),
        )
        meta = QueryMeta(quantity=self._extract_quantity(query_lower))

        return ExtractionResult(filters=filters, meta=meta, source=HEURISTIC_SOURCE)

    def _find_keyword(self, query: str, keywords: List[str]) -> Optional[str]:
        for keyword in keywords:
            if keyword in query:
                return keyword
        return None

    def _detect_gender(self, query: str) -> Optional[str]:
        """Detect gender with word boundaries so 'women' never reads as 'men'"""
        for gender, keywords in self.gender_keywords.items():
            for kw in keywords:
                if re.search(r'\b' + re.escape(kw) + r'\b', query):
                    return gender
        return None

    def _extract_sizes(self, query: str) -> Optional[List[str]]:
        sizes: List[str] = []
        for match in self.size_pattern.finditer(query):
            token = match.group(1).upper()
            if token not in sizes:
                sizes.append(token)
        return sizes or None

    def _extract_budget(self, query: str) -> Optional[Budget]:
        """Extract a price range; a range beats a lone upper bound"""
        for pattern, pattern_type in self.price_patterns:
            match = pattern.search(query)
            if not match:
                continue
            if pattern_type == 'range':
                low = self._to_number(match.group(1))
                high = self._to_number(match.group(2))
                if low is None or high is None:
                    continue
                if low > high:
                    low, high = high, low
                return Budget(min=low, max=high)
            if pattern_type == 'max':
                value = self._to_number(match.group(1))
                if value is not None:
                    return Budget(max=value)
        return None

    def _extract_brand(self, query: str) -> Optional[str]:
        match = self.brand_pattern.search(query)
        if match:
            brand = match.group(1).strip()
            return brand or None
        return None

    def _extract_quantity(self, query: str) -> Optional[int]:
        match = self.quantity_pattern.search(query)
        if match:
            return int(match.group(1))
        return None

    @staticmethod
    def _to_number(raw: str) -> Optional[float]:
        try:
            return float(raw.replace(',', ''))
        except (AttributeError, ValueError):
            return None

    def describe(self, result: ExtractionResult) -> Dict[str, Any]:
        """Flat view of an extraction for the debug endpoint"""
        return {
            'source': result.source,
            'filters': result.filters.model_dump(exclude_none=True),
            'meta': result.meta.model_dump(exclude_none=True),
        }


# Singleton instance
_parser = QueryParser()


def parse_query(query: str) -> ExtractionResult:
    """Parse a message with the heuristic extractor"""
    return _parser.parse_query(query)


def get_parser() -> QueryParser:
    """Get the singleton parser instance"""
    return _parser
