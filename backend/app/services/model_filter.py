"""
Catalog search and filtering.
"""
from typing import List, Tuple, Dict

from app.schemas import Category, MentalModel

ALL = "all"

COMPLEXITY_BUCKETS: Dict[str, Tuple[int, int]] = {
    "low": (1, 3),
    "medium": (4, 7),
    "high": (8, 10),
}

# Labels used by the library screens
BUCKET_ALIASES = {
    "beginner": "low",
    "intermediate": "medium",
    "advanced": "high",
}

_CATEGORIES = {c.value for c in Category}


def complexity_bucket(name: str) -> Tuple[int, int]:
    key = name.strip().lower()
    key = BUCKET_ALIASES.get(key, key)
    if key not in COMPLEXITY_BUCKETS:
        raise ValueError(f"Unknown complexity level: {name}")
    return COMPLEXITY_BUCKETS[key]


def _matches_query(model: MentalModel, query: str) -> bool:
    if query in model.name.lower() or query in model.description.lower():
        return True
    return any(query in scenario.lower() for scenario in model.application_scenarios)


def filter_models(
    catalog: List[MentalModel],
    query: str = "",
    category: str = ALL,
    complexity: str = ALL,
) -> List[MentalModel]:
    """
    Return the catalog entries matching every active criterion, in catalog order.

    Args:
        catalog: Full list of models
        query: Case-insensitive substring matched against name, description
            and application scenarios. Blank means no text filter.
        category: Category value or "all"
        complexity: Bucket name (low/medium/high or beginner/intermediate/advanced) or "all"

    Raises:
        ValueError: for an unknown category or complexity bucket
    """
    needle = (query or "").strip().lower()

    wanted_category = (category or ALL).strip().lower()
    if wanted_category != ALL and wanted_category not in _CATEGORIES:
        raise ValueError(f"Unknown category: {category}")

    bucket = None
    if (complexity or ALL).strip().lower() != ALL:
        bucket = complexity_bucket(complexity)

    result = []
    for model in catalog:
        if needle and not _matches_query(model, needle):
            continue
        if wanted_category != ALL and model.category.value != wanted_category:
            continue
        if bucket and not (bucket[0] <= model.complexity_score <= bucket[1]):
            continue
        result.append(model)
    return result
