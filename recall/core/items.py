"""
Item and analysis records consumed by the recall core.
Items come from an external parser/store; analyses from an external analyzer.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ItemType(str, Enum):
    """Closed set of item type tags."""

    CODE = "code"
    JSON = "json"
    QA = "qa"
    TEXT = "text"


@dataclass
class Item:
    """A single knowledge item."""

    id: str
    """Stable unique identifier"""

    type: str
    """One of the ItemType values"""

    title: str
    content: str
    timestamp: datetime
    """Creation time"""

    preview: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    """Open metadata bag (language, importance, keywords, ...)"""

    def __post_init__(self):
        if isinstance(self.type, ItemType):
            self.type = self.type.value


@dataclass
class AnalysisResult:
    """Output of the external content analyzer for one item."""

    importance: float = 0.0
    sentiment: str = "neutral"  # positive|negative|neutral
    summary: str = ""
    keywords: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    entities: List[str] = field(default_factory=list)


def apply_analysis(item: Item, analysis: Optional[AnalysisResult]) -> Item:
    """Return a copy of item with analysis fields merged into its metadata."""
    if analysis is None:
        return item

    metadata = dict(item.metadata)
    metadata.update({
        "importance": max(0.0, min(1.0, analysis.importance)),
        "sentiment": analysis.sentiment,
        "keywords": list(analysis.keywords),
        "entities": list(analysis.entities),
        "topics": list(analysis.topics),
    })
    if analysis.summary:
        metadata["summary"] = analysis.summary
    return replace(item, metadata=metadata)
