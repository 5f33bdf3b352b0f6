"""Data models for the page graph.

A PageGraph is the flat, deduplicated result of traversing the remote page
graph: one PageRecord per reachable page id. Page nodes are the rooted tree
built from it afterwards, with owned children and non-owning cross
references for pages reachable through more than one path.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

from .errors import DuplicatePageError


@dataclass(frozen=True)
class PageRecord:
    """Raw fetched representation of one remote page.

    Records are immutable once created; a later fetch of the same page
    produces a new record that replaces the old one as a whole.

    Attributes:
        page_id: Canonical page id
        title: Page title
        blocks: Ordered content blocks (storage format fragments)
        child_ids: Ordered ids of the page's sub-pages
        link_ids: Ordered ids of pages linked inline from the content
        version: Remote version number
        last_modified: ISO 8601 timestamp of the last remote modification
        space_key: Space the page lives in
    """
    page_id: str
    title: str = ""
    blocks: Tuple[str, ...] = ()
    child_ids: Tuple[str, ...] = ()
    link_ids: Tuple[str, ...] = ()
    version: int = 1
    last_modified: str = ""
    space_key: str = ""

    @property
    def references(self) -> List[str]:
        """Child ids followed by link ids, deduplicated, without self references."""
        seen = {self.page_id}
        refs = []
        for ref in self.child_ids + self.link_ids:
            if ref not in seen:
                seen.add(ref)
                refs.append(ref)
        return refs

    def to_dict(self) -> Dict[str, Any]:
        return {
            'page_id': self.page_id,
            'title': self.title,
            'blocks': list(self.blocks),
            'child_ids': list(self.child_ids),
            'link_ids': list(self.link_ids),
            'version': self.version,
            'last_modified': self.last_modified,
            'space_key': self.space_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PageRecord':
        """Rebuild a record serialized with to_dict().

        Raises:
            KeyError: If page_id is missing
            TypeError: If a field has the wrong type
        """
        if not isinstance(data, dict):
            raise TypeError(f"Page record must be a dict, got {type(data).__name__}")

        def _str_tuple(name: str) -> Tuple[str, ...]:
            value = data.get(name, [])
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise TypeError(f"Field '{name}' must be a list of strings")
            return tuple(value)

        page_id = data['page_id']
        version = data.get('version', 1)
        if not isinstance(page_id, str) or not isinstance(version, int):
            raise TypeError("Fields 'page_id' and 'version' have invalid types")

        return cls(
            page_id=page_id,
            title=str(data.get('title', '')),
            blocks=_str_tuple('blocks'),
            child_ids=_str_tuple('child_ids'),
            link_ids=_str_tuple('link_ids'),
            version=version,
            last_modified=str(data.get('last_modified', '')),
            space_key=str(data.get('space_key', '')),
        )


class PageSource(Protocol):
    """Anything that can fetch a single page record by canonical page id.

    Implementations raise a RemoteError subclass on failure.
    """

    def fetch(self, page_id: str) -> PageRecord:
        ...


@dataclass
class LoadStats:
    """Counters collected while loading a page graph.

    Attributes:
        fetched: Pages retrieved from the remote source
        cache_hits: Pages served from the content cache
        missing: Page ids that could not be fetched (tolerant mode only)
    """
    fetched: int = 0
    cache_hits: int = 0
    missing: List[str] = field(default_factory=list)


class PageGraph:
    """Deduplicated mapping from page id to PageRecord.

    Keys are unique and kept in insertion (discovery) order.
    """

    def __init__(self, root_id: str):
        self.root_id = root_id
        self.stats = LoadStats()
        self._records: Dict[str, PageRecord] = {}

    def add(self, page_id: str, record: PageRecord) -> None:
        """Insert a record.

        Raises:
            DuplicatePageError: If page_id is already present
        """
        if page_id in self._records:
            raise DuplicatePageError(page_id)
        self._records[page_id] = record

    def get(self, page_id: str) -> Optional[PageRecord]:
        return self._records.get(page_id)

    def ids(self) -> List[str]:
        return list(self._records)

    def records(self) -> Dict[str, PageRecord]:
        return dict(self._records)

    def __contains__(self, page_id: object) -> bool:
        return page_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageGraph):
            return NotImplemented
        return self.root_id == other.root_id and self._records == other._records

    def __repr__(self) -> str:
        return f"PageGraph(root_id={self.root_id!r}, pages={len(self._records)})"


class Page:
    """Tree node wrapping one PageRecord.

    Each page owns its children. A page reachable from more than one place
    is owned by exactly one parent; every other place holds it in
    cross_references, which never own the node.
    """

    def __init__(self, record: PageRecord, parent: Optional['Page'] = None):
        self.record = record
        self.parent = parent
        self.children: List['Page'] = []
        self.cross_references: List['Page'] = []
        self._references: List['Page'] = []

    @property
    def page_id(self) -> str:
        return self.record.page_id

    @property
    def title(self) -> str:
        return self.record.title

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def depth(self) -> int:
        return len(self.ancestors())

    @property
    def references(self) -> List['Page']:
        """Every referenced node, owned or not, in the record's reference order."""
        return list(self._references)

    def adopt(self, child: 'Page') -> None:
        """Attach child as an owned child of this page."""
        child.parent = self
        self.children.append(child)
        self._references.append(child)

    def add_cross_reference(self, other: 'Page') -> None:
        """Record a non-owning reference to a page owned elsewhere."""
        self.cross_references.append(other)
        self._references.append(other)

    def ancestors(self) -> List['Page']:
        """Ancestors from the direct parent up to the root."""
        result = []
        node = self.parent
        while node is not None:
            result.append(node)
            node = node.parent
        return result

    def walk(self) -> Iterator['Page']:
        """Pre-order iteration over this node and its owned descendants."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        return f"Page(page_id={self.page_id!r}, title={self.title!r})"
