"""
Step Catalog - Canonical production-step categories and their aliases.

Every dashboard counts steps against the same eight categories. Older
job plans still carry legacy display names ("Printing", "Dispatch", ...),
so each category owns an alias list, and the merged statistics are keyed
by a display label.

This is the ONLY place step names are mapped. Resolver callers, the
statistics aggregator and the production views all read from here.
"""

from enum import StrEnum


class StepCategory(StrEnum):
    """The eight canonical production-step categories, in workflow order."""

    PAPER_STORE = "PaperStore"
    PRINTING = "PrintingDetails"
    CORRUGATION = "Corrugation"
    FLUTE_LAMINATION = "FluteLaminateBoardConversion"
    PUNCHING = "Punching"
    SIDE_FLAP_PASTING = "SideFlapPasting"
    QUALITY = "QualityDept"
    DISPATCH = "DispatchProcess"


# =============================================================================
# ALIASES
# =============================================================================

STEP_ALIASES: dict[StepCategory, tuple[str, ...]] = {
    StepCategory.PAPER_STORE: ("PaperStore", "Paper Store"),
    StepCategory.PRINTING: ("PrintingDetails", "Printing"),
    StepCategory.CORRUGATION: ("Corrugation",),
    StepCategory.FLUTE_LAMINATION: ("FluteLaminateBoardConversion", "Flute Lamination"),
    StepCategory.PUNCHING: ("Punching",),
    StepCategory.SIDE_FLAP_PASTING: ("SideFlapPasting", "Flap Pasting"),
    StepCategory.QUALITY: ("QualityDept", "Quality Control"),
    StepCategory.DISPATCH: ("DispatchProcess", "Dispatch"),
}

# Merged statistics key. Categories without a legacy alias keep their own name.
MERGE_LABELS: dict[StepCategory, str] = {
    StepCategory.PAPER_STORE: "Paper Store",
    StepCategory.PRINTING: "Printing",
    StepCategory.CORRUGATION: "Corrugation",
    StepCategory.FLUTE_LAMINATION: "Flute Lamination",
    StepCategory.PUNCHING: "Punching",
    StepCategory.SIDE_FLAP_PASTING: "Flap Pasting",
    StepCategory.QUALITY: "Quality Control",
    StepCategory.DISPATCH: "Dispatch",
}

# Attribute name of the step-type sub-object on a step record, and the key
# of the same step type inside a completed job's allStepDetails ledger.
DETAIL_KEYS: dict[StepCategory, tuple[str, ...]] = {
    StepCategory.PAPER_STORE: ("paperStore",),
    StepCategory.PRINTING: ("printingDetails",),
    StepCategory.CORRUGATION: ("corrugation",),
    StepCategory.FLUTE_LAMINATION: ("flutelam", "fluteLaminateBoardConversion"),
    StepCategory.PUNCHING: ("punching",),
    StepCategory.SIDE_FLAP_PASTING: ("sideFlapPasting",),
    StepCategory.QUALITY: ("qualityDept",),
    StepCategory.DISPATCH: ("dispatchProcess",),
}

# Per-step detail endpoint slugs: GET /<slug>/by-step-id/{id}
DETAIL_ENDPOINTS: dict[StepCategory, str] = {
    StepCategory.PAPER_STORE: "paper-store",
    StepCategory.PRINTING: "printing-details",
    StepCategory.CORRUGATION: "corrugation",
    StepCategory.FLUTE_LAMINATION: "flute-laminate-board-conversion",
    StepCategory.PUNCHING: "punching",
    StepCategory.SIDE_FLAP_PASTING: "side-flap-pasting",
    StepCategory.QUALITY: "quality-dept",
    StepCategory.DISPATCH: "dispatch-process",
}

# Steps shown on the production-head view.
PRODUCTION_STEPS: tuple[StepCategory, ...] = (
    StepCategory.CORRUGATION,
    StepCategory.FLUTE_LAMINATION,
    StepCategory.PUNCHING,
    StepCategory.SIDE_FLAP_PASTING,
)

_NAME_TO_CATEGORY: dict[str, StepCategory] = {
    alias: category for category, aliases in STEP_ALIASES.items() for alias in aliases
}

ALL_DETAIL_KEYS: tuple[str, ...] = tuple(
    key for keys in DETAIL_KEYS.values() for key in keys
)


def canonical_category(step_name: str | None) -> StepCategory | None:
    """Map a raw step name (canonical or legacy) to its category, or None if unknown."""
    if not step_name:
        return None
    return _NAME_TO_CATEGORY.get(step_name)


def is_step_variant(category: StepCategory, step_name: str | None) -> bool:
    """True when step_name is the category itself or one of its aliases."""
    return canonical_category(step_name) is category


def merge_label(name: str) -> str:
    """Merged-statistics key for a bucket name; unknown names pass through."""
    category = canonical_category(name)
    if category is None:
        return name
    return MERGE_LABELS[category]


def ledger_key(category: StepCategory) -> str:
    """Key of a category in the allStepDetails ledger and stepDetails.data."""
    return DETAIL_KEYS[category][0]
