"""
Interest keyword table

Maps canonical interest labels ("tech & innovation") to keywords that
indicate them. Loaded once from YAML and shared read-only.
"""

from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union
import logging

import yaml


logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS_PATH = Path(__file__).resolve().parent.parent / "config" / "interest_keywords.yaml"

KeywordTable = Mapping[str, Tuple[str, ...]]


@lru_cache(maxsize=8)
def _load(path: Path) -> KeywordTable:
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    table = {
        str(label).lower(): tuple(str(keyword).lower() for keyword in keywords or ())
        for label, keywords in raw.items()
    }
    logger.info(f"Loaded {len(table)} interest keyword groups from {path}")
    return MappingProxyType(table)


def load_interest_keywords(path: Optional[Union[str, Path]] = None) -> KeywordTable:
    """Read-only keyword table, cached per path"""
    return _load(Path(path).resolve() if path else DEFAULT_KEYWORDS_PATH)


def expand_interest(interest: str, keywords: KeywordTable) -> Tuple[str, ...]:
    """Keywords for an interest label, empty when the label is unknown"""
    return keywords.get(interest.lower(), ())
