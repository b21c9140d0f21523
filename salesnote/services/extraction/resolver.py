"""Match free-text customer and product names against the catalog."""
import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, Tuple, TypeVar

from rapidfuzz import fuzz, utils

from salesnote.services.catalog.base import InventoryItem, Vendor
from salesnote.services.extraction.models import ExtractedLineItem, MatchMethod

logger = logging.getLogger(__name__)

PRODUCT_MATCH_THRESHOLD = 0.7
CUSTOMER_MATCH_THRESHOLD = 0.7
CUSTOMER_RECOVERY_THRESHOLD = 0.6

EntryT = TypeVar("EntryT", Vendor, InventoryItem)
SimilarityScorer = Callable[[str, str], float]


def token_similarity(left: str, right: str) -> float:
    """Similarity in [0, 1]: the better of edit-distance ratio and token-sorted ratio."""
    if not left or not right:
        return 0.0
    score = max(
        fuzz.ratio(left, right, processor=utils.default_process),
        fuzz.token_sort_ratio(left, right, processor=utils.default_process),
    )
    return score / 100.0


def normalize_name(name: str) -> str:
    return " ".join((name or "").split()).casefold()


@dataclass
class CatalogMatch(Generic[EntryT]):
    """Outcome of resolving one name."""

    name: str
    entry: Optional[EntryT]
    method: MatchMethod
    score: float = 0.0

    @property
    def resolved(self) -> bool:
        return self.entry is not None


class EntityResolver:
    """Exact case-insensitive match first, then the best approximate match above a threshold."""

    def __init__(
        self,
        scorer: SimilarityScorer = token_similarity,
        product_threshold: float = PRODUCT_MATCH_THRESHOLD,
        customer_threshold: float = CUSTOMER_MATCH_THRESHOLD,
        customer_recovery_threshold: float = CUSTOMER_RECOVERY_THRESHOLD,
    ):
        self.scorer = scorer
        self.product_threshold = product_threshold
        self.customer_threshold = customer_threshold
        self.customer_recovery_threshold = customer_recovery_threshold

    def find_exact(self, name: str, entries: Sequence[EntryT]) -> Optional[EntryT]:
        target = normalize_name(name)
        if not target:
            return None
        for entry in entries:
            if normalize_name(entry.name) == target:
                return entry
        return None

    def find_best(
        self, name: str, entries: Sequence[EntryT], threshold: float
    ) -> Optional[Tuple[EntryT, float]]:
        """Highest-scoring entry at or above `threshold`; earlier entries win ties."""
        if not name or not name.strip():
            return None
        best: Optional[Tuple[EntryT, float]] = None
        for entry in entries:
            score = self.scorer(name, entry.name)
            if score >= threshold and (best is None or score > best[1]):
                best = (entry, score)
        return best

    def match_product(self, name: str, inventory: Sequence[InventoryItem]) -> CatalogMatch[InventoryItem]:
        exact = self.find_exact(name, inventory)
        if exact is not None:
            return CatalogMatch(name=exact.name, entry=exact, method=MatchMethod.EXACT, score=1.0)

        best = self.find_best(name, inventory, self.product_threshold)
        if best is not None:
            entry, score = best
            logger.info(f"[RESOLVER] Product '{name}' -> '{entry.name}' (score {score:.2f})")
            return CatalogMatch(name=entry.name, entry=entry, method=MatchMethod.FUZZY, score=score)

        logger.info(f"[RESOLVER] Product '{name}' not found in inventory")
        return CatalogMatch(name=name, entry=None, method=MatchMethod.UNRESOLVED)

    def match_customer(
        self, name: str, vendors: Sequence[Vendor], hint: str = ""
    ) -> CatalogMatch[Vendor]:
        """Resolve the customer, falling back to the note's customer candidate (`hint`)."""
        if not (name or "").strip() and not (hint or "").strip():
            return CatalogMatch(name="", entry=None, method=MatchMethod.NONE)
        exact = self.find_exact(name, vendors)
        if exact is not None:
            return CatalogMatch(name=exact.name, entry=exact, method=MatchMethod.EXACT, score=1.0)

        best = self.find_best(name, vendors, self.customer_threshold)
        if best is None:
            exact = self.find_exact(hint, vendors)
            if exact is not None:
                logger.info(f"[RESOLVER] Customer recovered from note: '{exact.name}'")
                return CatalogMatch(name=exact.name, entry=exact, method=MatchMethod.EXACT, score=1.0)
            best = self.find_best(name or hint, vendors, self.customer_recovery_threshold)

        if best is not None:
            entry, score = best
            logger.info(f"[RESOLVER] Customer '{name or hint}' -> '{entry.name}' (score {score:.2f})")
            return CatalogMatch(name=entry.name, entry=entry, method=MatchMethod.FUZZY, score=score)

        return CatalogMatch(name=name or hint, entry=None, method=MatchMethod.UNRESOLVED)

    def resolve_line_item(
        self, item: ExtractedLineItem, inventory: Sequence[InventoryItem]
    ) -> Tuple[ExtractedLineItem, Optional[InventoryItem]]:
        """Adopt the canonical catalog name for an item, or keep its text unresolved."""
        match = self.match_product(item.product_name, inventory)
        resolved = item.model_copy(
            update={
                "product_name": match.name,
                "catalog_id": match.entry.id if match.entry else None,
                "match_method": match.method,
            }
        )
        return resolved, match.entry
