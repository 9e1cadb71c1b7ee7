"""Extract creator records from listing markup."""

import logging
from typing import List, Optional

from selectolax.parser import Node

from creator_crawler.config import settings
from creator_crawler.ingest.number_parser import parse_number
from creator_crawler.models import CreatorRecord, UNKNOWN_NUMBER

logger = logging.getLogger(__name__)

ENTRY_SELECTOR = "div.author__list div.carousel-cell"
LINK_SELECTOR = "a.author__card"
NAME_SELECTOR = "div.card__content--name h5"
IMAGE_SELECTOR = "img"
NUMBERS_SELECTOR = "div.card__content--numbers div"
TAGS_SELECTOR = "div.card__content--tags span"


def is_element(node: Node) -> bool:
    """Text nodes are tagged "-text" and comments "_comment"."""
    return not node.tag.startswith(("-", "_"))


def sibling_elements(first: Node, limit: Optional[int] = None) -> List[Node]:
    """
    Collect ``first`` and the element siblings that follow it.

    The listing groups repeated rows (cards, tags, categories) without
    per-item identifiers, so rows are addressed by position among siblings.

    Args:
        first: First element of the group
        limit: Maximum number of elements to collect

    Returns:
        Ordered list of sibling elements starting with ``first``
    """
    nodes: List[Node] = []
    node = first
    while node is not None and (limit is None or len(nodes) < limit):
        if is_element(node):
            nodes.append(node)
        node = node.next
    return nodes


def node_text(node: Optional[Node]) -> str:
    if node is None:
        return ""
    return node.text(strip=True)


class RecordExtractor:
    """Turns listing cards into CreatorRecord instances."""

    def __init__(
        self,
        patrons_marker: str | None = None,
        monthly_revenue_marker: str | None = None,
        total_revenue_marker: str | None = None,
    ):
        self.patrons_marker = patrons_marker or settings.patrons_marker
        self.monthly_revenue_marker = monthly_revenue_marker or settings.monthly_revenue_marker
        self.total_revenue_marker = total_revenue_marker or settings.total_revenue_marker

    @staticmethod
    def _labelled_number(entry: Node, marker: str) -> float:
        """Parse the value of the first numbers block whose text mentions ``marker``."""
        for block in entry.css(NUMBERS_SELECTOR):
            if marker in block.text():
                return parse_number(node_text(block.css_first("span")))
        return UNKNOWN_NUMBER

    @staticmethod
    def _tags(entry: Node) -> tuple[str, ...]:
        tag_nodes = entry.css(TAGS_SELECTOR)
        if not tag_nodes:
            return ()
        return tuple(node_text(tag) for tag in sibling_elements(tag_nodes[0], len(tag_nodes)))

    def extract_one(self, entry: Node, is_recommended: bool) -> Optional[CreatorRecord]:
        """
        Extract one record from a ``div.carousel-cell`` entry.

        Returns:
            The record, or None if the card carries no profile link
        """
        link = entry.css_first(LINK_SELECTOR)
        url = (link.attributes.get("href") or "").strip() if link is not None else ""
        if not url:
            logger.debug("Skipping listing entry without a profile link")
            return None

        image = entry.css_first(IMAGE_SELECTOR)
        image_url = (image.attributes.get("data-src") or "") if image is not None else ""

        return CreatorRecord(
            url=url,
            name=node_text(entry.css_first(NAME_SELECTOR)),
            image_url=image_url,
            is_recommended=is_recommended,
            number_of_patrons=self._labelled_number(entry, self.patrons_marker),
            monthly_revenue=self._labelled_number(entry, self.monthly_revenue_marker),
            total_revenue=self._labelled_number(entry, self.total_revenue_marker),
            tags=self._tags(entry),
        )

    def extract_many(
        self,
        container: Node,
        is_recommended: bool,
        count: Optional[int] = None,
    ) -> List[CreatorRecord]:
        """
        Extract the listing entries found inside ``container``.

        Args:
            container: Section holding a ``div.author__list``
            is_recommended: Flag stored on every extracted record
            count: Number of entries to read (defaults to all matched entries)

        Returns:
            Records in page order
        """
        entries = container.css(ENTRY_SELECTOR)
        if not entries:
            return []

        rows = sibling_elements(entries[0], count if count is not None else len(entries))
        records = []
        for row in rows:
            record = self.extract_one(row, is_recommended)
            if record is not None:
                records.append(record)
        return records
