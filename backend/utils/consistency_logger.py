"""
Consistency Logger
Tracks where each turn's filters came from (Gemini or heuristics) and how
many products survived filtering, for the debug endpoints.
"""

import hashlib
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from collections import defaultdict

logger = logging.getLogger(__name__)


class ConsistencyLogger:
    """Bounded in-memory log of extraction events"""

    def __init__(self, max_log_size: int = 1000):
        self.extraction_log: List[Dict[str, Any]] = []
        self.query_fingerprints = defaultdict(list)
        self.max_log_size = max_log_size
        # Endpoints run in a threadpool and share one instance
        self._lock = threading.Lock()

    def log_extraction(
        self,
        session_id: str,
        original_query: str,
        source: str,
        filters: Dict[str, Any],
        candidates_count: int = 0,
        final_products_count: int = 0,
        used_fallback: bool = False,
    ):
        """
        Log one turn's extraction.

        Args:
            session_id: Session identifier
            original_query: The user's message
            source: "gemini" or "heuristic"
            filters: Extracted filters with absent fields dropped
            candidates_count: Products that passed the hard filters
            final_products_count: Products shown to the user
            used_fallback: True when the full catalog was ranked instead
        """
        query_fingerprint = self._get_query_fingerprint(original_query)

        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'session_id': session_id,
            'original_query': original_query,
            'query_fingerprint': query_fingerprint,
            'source': source,
            'filters': filters,
            'candidates_count': candidates_count,
            'final_products_count': final_products_count,
            'used_fallback': used_fallback,
        }

        with self._lock:
            self.extraction_log.append(log_entry)
            self.query_fingerprints[query_fingerprint].append(log_entry)

            if len(self.extraction_log) > self.max_log_size:
                dropped = self.extraction_log[:-self.max_log_size]
                self.extraction_log = self.extraction_log[-self.max_log_size:]
                for entry in dropped:
                    bucket = self.query_fingerprints.get(entry['query_fingerprint'])
                    if bucket and bucket[0] is entry:
                        bucket.pop(0)
                        if not bucket:
                            del self.query_fingerprints[entry['query_fingerprint']]

        logger.info(
            f"📊 [{source}] '{original_query}' filters={filters} "
            f"candidates={candidates_count} shown={final_products_count}"
            + (" (catalog fallback)" if used_fallback else "")
        )

    def _get_query_fingerprint(self, query: str) -> str:
        """Group messages that differ only in case, spacing or filler phrases"""
        normalized = ' '.join(query.lower().split())

        for filler in ('show me ', 'give me ', 'find ', 'i need ', 'i want '):
            normalized = normalized.replace(filler, '')
        return hashlib.md5(normalized.encode()).hexdigest()[:8]

    def get_consistency_report(self, query: Optional[str] = None) -> Dict[str, Any]:
        """Statistics over all logged turns, or over turns like `query`"""
        with self._lock:
            if query:
                entries = list(self.query_fingerprints.get(self._get_query_fingerprint(query), []))
            else:
                entries = list(self.extraction_log)

        if not entries:
            return {'error': 'No data available'}

        total = len(entries)
        gemini_turns = sum(1 for e in entries if e['source'] == 'gemini')
        with_budget = sum(1 for e in entries if e['filters'].get('budget'))
        fallbacks = sum(1 for e in entries if e['used_fallback'])

        report = {
            'total_queries': total,
            'gemini_rate': f"{gemini_turns / total * 100:.1f}%",
            'budget_extraction_rate': f"{with_budget / total * 100:.1f}%",
            'catalog_fallback_rate': f"{fallbacks / total * 100:.1f}%",
            'sample_queries': [e['original_query'] for e in entries[:5]],
        }

        if query:
            # Same message should always produce the same filters
            distinct = {repr(sorted(e['filters'].items())) for e in entries}
            report['filters_consistent'] = len(distinct) == 1

        return report

    def get_query_history(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        fingerprint = self._get_query_fingerprint(query)
        with self._lock:
            return list(self.query_fingerprints.get(fingerprint, [])[-limit:])


# Singleton instance
_logger = ConsistencyLogger()


def get_consistency_report(*args, **kwargs):
    """Get consistency report"""
    return _logger.get_consistency_report(*args, **kwargs)


def get_query_history(*args, **kwargs):
    """Get query history"""
    return _logger.get_query_history(*args, **kwargs)


def get_logger() -> ConsistencyLogger:
    """Get the singleton logger instance"""
    return _logger
