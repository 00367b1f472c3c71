"""
Shopping Assistant
One conversational turn: extract filters, match the catalog, rank by session
preferences, compose the reply, then persist the evolved session state.
"""

import logging
import uuid
from typing import List, Optional

from agents.filter_extractor import FilterExtractor
from agents.response_composer import build_suggestions, compose_message
from config import Config
from models.schemas import HistoryEntry, PreferenceState, ProductSummary, SessionState, TurnResult
from tools.product_catalog import ProductCatalog
from tools.session_manager import SessionManager
from utils.catalog_matcher import filter_catalog
from utils.consistency_logger import ConsistencyLogger, get_logger
from utils.preference_ranker import rank

logger = logging.getLogger(__name__)


class InvalidRequest(ValueError):
    """Caller input is missing or malformed; nothing was applied"""


class ShoppingAssistant:
    """Turn pipeline over an injected catalog, session manager and extractor"""

    def __init__(
        self,
        catalog: ProductCatalog,
        session_manager: SessionManager,
        extractor: FilterExtractor,
        consistency_logger: Optional[ConsistencyLogger] = None,
        default_count: int = Config.DEFAULT_RESULT_COUNT,
        max_count: int = Config.MAX_RESULT_COUNT,
    ):
        self.catalog = catalog
        self.session_manager = session_manager
        self.extractor = extractor
        self.consistency_logger = consistency_logger or get_logger()
        self.default_count = default_count
        self.max_count = max_count

    def run_chat(self, message: Optional[str], session_id: Optional[str] = None) -> TurnResult:
        if not message or not message.strip():
            raise InvalidRequest("Message is required")

        session_id = session_id or str(uuid.uuid4())
        state = self.session_manager.load(session_id)

        extraction = self.extractor.extract(message)
        filters = extraction.filters
        state = self.session_manager.apply_filters(state, filters)

        matching = filter_catalog(self.catalog, filters)
        used_fallback = not matching
        candidates = matching if matching else self.catalog.products
        ranked = rank(candidates, state.preferences)

        quantity = extraction.meta.resolved_quantity(self.default_count, self.max_count)
        top_picks = ranked[:quantity]
        summaries = self._summarize(top_picks, state.preferences)

        assistant_message = compose_message(filters, top_picks)

        self.session_manager.record_turn(state, HistoryEntry(
            user_message=message,
            filters=filters,
            response_product_ids=[product.id for product in top_picks],
        ))
        self.session_manager.save(session_id, state)

        # Provenance only; the turn is already persisted
        try:
            self.consistency_logger.log_extraction(
                session_id=session_id,
                original_query=message,
                source=extraction.source,
                filters=filters.model_dump(exclude_none=True),
                candidates_count=len(matching),
                final_products_count=len(top_picks),
                used_fallback=used_fallback,
            )
        except Exception as e:
            logger.warning(f"⚠️ Could not record extraction for session {session_id}: {e}")

        return TurnResult(
            session_id=session_id,
            message=assistant_message,
            products=summaries,
            filters=filters,
            suggestions=build_suggestions(filters),
        )

    def apply_feedback(self, session_id: Optional[str], product_id: Optional[str],
                       action: Optional[str]) -> PreferenceState:
        if not session_id or not product_id or not action:
            raise InvalidRequest("sessionId, productId and action are required")

        state = self.session_manager.load(session_id)
        # Raises InvalidFeedbackAction before anything is written
        state = self.session_manager.apply_feedback(state, product_id, action)
        self.session_manager.save(session_id, state)

        logger.info(f"👍 Feedback '{action}' on {product_id} for session {session_id}")
        return state.preferences

    def get_wishlist(self, session_id: Optional[str]) -> List[ProductSummary]:
        """Saved products that still exist in the catalog, in save order"""
        if not session_id:
            raise InvalidRequest("sessionId is required")

        state = self.session_manager.load(session_id)
        items = []
        for product_id in state.preferences.saved_product_ids:
            product = self.catalog.get(product_id)
            if product is not None:
                items.append(ProductSummary.from_product(product, saved=True))
        return items

    def get_session(self, session_id: Optional[str]) -> SessionState:
        if not session_id:
            raise InvalidRequest("sessionId is required")
        return self.session_manager.load(session_id)

    def clear_session(self, session_id: str):
        self.session_manager.clear(session_id)

    @staticmethod
    def _summarize(products, preferences: PreferenceState) -> List[ProductSummary]:
        saved = set(preferences.saved_product_ids)
        return [ProductSummary.from_product(product, saved=product.id in saved) for product in products]
