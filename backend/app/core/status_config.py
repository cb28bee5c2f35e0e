"""Status Configuration and Transition Rules

This module defines the valid status values and allowed transitions for
plot Sales Statuses, plus the development phase rules used by
Development Statuses. Everything here is static: changing a transition
is a code change, not a data change.
"""
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple


# =============================================================================
# Sales Status
# =============================================================================

class SalesStatusType(str, Enum):
    """Semantic stage of a plot/file in its sales lifecycle"""
    AVAILABLE = "available"
    BOOKED = "booked"
    RESERVED = "reserved"
    ALLOTTED = "allotted"
    CONTRACTED = "contracted"
    CANCELLED = "cancelled"
    ON_HOLD = "on_hold"
    SOLD = "sold"
    PENDING = "pending"
    CLOSED = "closed"


# Allowed transitions: current type -> types reachable in one step
SALES_STATUS_TRANSITIONS: Mapping[SalesStatusType, FrozenSet[SalesStatusType]] = MappingProxyType({
    SalesStatusType.AVAILABLE: frozenset({
        SalesStatusType.BOOKED,
        SalesStatusType.RESERVED,
        SalesStatusType.ALLOTTED,
        SalesStatusType.PENDING,
        SalesStatusType.ON_HOLD,
    }),
    SalesStatusType.BOOKED: frozenset({
        SalesStatusType.ALLOTTED,
        SalesStatusType.CONTRACTED,
        SalesStatusType.CANCELLED,
        SalesStatusType.ON_HOLD,
    }),
    SalesStatusType.RESERVED: frozenset({
        SalesStatusType.ALLOTTED,
        SalesStatusType.CONTRACTED,
        SalesStatusType.CANCELLED,
        SalesStatusType.AVAILABLE,
    }),
    SalesStatusType.ALLOTTED: frozenset({
        SalesStatusType.CONTRACTED,
        SalesStatusType.CANCELLED,
        SalesStatusType.SOLD,
    }),
    SalesStatusType.CONTRACTED: frozenset({
        SalesStatusType.SOLD,
        SalesStatusType.CLOSED,
        SalesStatusType.CANCELLED,
    }),
    SalesStatusType.CANCELLED: frozenset({SalesStatusType.AVAILABLE}),
    SalesStatusType.ON_HOLD: frozenset({
        SalesStatusType.AVAILABLE,
        SalesStatusType.BOOKED,
        SalesStatusType.CANCELLED,
    }),
    SalesStatusType.SOLD: frozenset({SalesStatusType.CLOSED}),
    SalesStatusType.PENDING: frozenset({
        SalesStatusType.BOOKED,
        SalesStatusType.RESERVED,
        SalesStatusType.CANCELLED,
        SalesStatusType.AVAILABLE,
    }),
    SalesStatusType.CLOSED: frozenset(),  # Terminal state
})

# Display order for transition lists (enum declaration order)
_SALES_TYPE_ORDER = {t: i for i, t in enumerate(SalesStatusType)}


def get_allowed_sales_transitions(status_type: str) -> List[str]:
    """Get allowed next status types, in enum order"""
    try:
        current = SalesStatusType(status_type)
    except ValueError:
        return []
    allowed = SALES_STATUS_TRANSITIONS.get(current, frozenset())
    return [t.value for t in sorted(allowed, key=_SALES_TYPE_ORDER.__getitem__)]


def is_valid_sales_transition(current_type: str, target_type: str) -> bool:
    """Check if a sales status type transition is allowed.

    Unlike order statuses, staying on the same type is not implicitly
    valid: the table is the only source of truth.
    """
    return target_type in get_allowed_sales_transitions(current_type)


# Fields a record must carry before it can validly occupy a status type
_Rule = Mapping[str, object]


def _rule(field: str, message: str, required: bool = True) -> _Rule:
    return MappingProxyType({"field": field, "required": required, "message": message})


SALES_STATUS_VALIDATION_RULES: Mapping[SalesStatusType, Tuple[_Rule, ...]] = MappingProxyType({
    SalesStatusType.AVAILABLE: (),
    SalesStatusType.BOOKED: (
        _rule("deposit_paid", "Deposit payment is required for booking"),
        _rule("booking_date", "Booking date is required"),
    ),
    SalesStatusType.RESERVED: (
        _rule("reservation_fee", "Reservation fee is required"),
        _rule("reservation_date", "Reservation date is required"),
    ),
    SalesStatusType.ALLOTTED: (
        _rule("allotment_letter", "Allotment letter is required"),
        _rule("allotment_date", "Allotment date is required"),
    ),
    SalesStatusType.CONTRACTED: (
        _rule("contract_number", "Contract number is required"),
        _rule("contract_date", "Contract date is required"),
    ),
    SalesStatusType.CANCELLED: (
        _rule("cancellation_reason", "Cancellation reason is required"),
        _rule("cancellation_date", "Cancellation date is required"),
    ),
    SalesStatusType.ON_HOLD: (
        _rule("hold_reason", "Hold reason is required"),
        _rule("hold_until", "Hold until date is required"),
    ),
    SalesStatusType.SOLD: (
        _rule("sale_date", "Sale date is required"),
        _rule("sale_amount", "Sale amount is required"),
        _rule("payment_completed", "Payment must be completed"),
    ),
    SalesStatusType.PENDING: (
        _rule("pending_reason", "Pending reason is required"),
    ),
    SalesStatusType.CLOSED: (
        _rule("closing_date", "Closing date is required"),
        _rule("all_documents_submitted", "All documents must be submitted"),
    ),
})


def get_sales_validation_rules(status_type: str) -> List[dict]:
    """Rules (as plain dicts) for a sales status type; [] for unknown types"""
    try:
        current = SalesStatusType(status_type)
    except ValueError:
        return []
    return [dict(rule) for rule in SALES_STATUS_VALIDATION_RULES[current]]


def find_missing_fields(rules: List[dict], fields: Dict[str, object]) -> List[dict]:
    """Return the required rules whose field is absent or empty in ``fields``.

    ``False`` counts as missing: boolean requirements such as
    ``payment_completed`` must actually be true.
    """
    missing = []
    for rule in rules:
        if not rule.get("required"):
            continue
        value = fields.get(rule["field"])
        if value is None or value is False or (isinstance(value, str) and not value.strip()):
            missing.append(rule)
    return missing


SALES_BADGE_VARIANTS: Mapping[SalesStatusType, str] = MappingProxyType({
    SalesStatusType.AVAILABLE: "success",
    SalesStatusType.BOOKED: "info",
    SalesStatusType.RESERVED: "warning",
    SalesStatusType.ALLOTTED: "primary",
    SalesStatusType.CONTRACTED: "success",
    SalesStatusType.CANCELLED: "danger",
    SalesStatusType.ON_HOLD: "warning",
    SalesStatusType.SOLD: "success",
    SalesStatusType.PENDING: "info",
    SalesStatusType.CLOSED: "secondary",
})


def get_badge_variant(status_type: str) -> str:
    try:
        return SALES_BADGE_VARIANTS[SalesStatusType(status_type)]
    except ValueError:
        return "default"


# =============================================================================
# Presentation helpers shared by every status table
# =============================================================================

DEFAULT_COLOR_CODE = "#808080"
COLOR_CODE_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"

COLOR_NAMES: Mapping[str, str] = MappingProxyType({
    "#FF0000": "Red",
    "#00FF00": "Green",
    "#0000FF": "Blue",
    "#FFFF00": "Yellow",
    "#FFA500": "Orange",
    "#800080": "Purple",
    "#008080": "Teal",
    "#808080": "Gray",
    "#A52A2A": "Brown",
    "#000000": "Black",
})


def get_color_name(color_code: Optional[str]) -> Optional[str]:
    if not color_code:
        return color_code
    return COLOR_NAMES.get(color_code.upper(), color_code)


def get_css_class(status_code: str) -> str:
    return f"status-{status_code.lower().replace('_', '-')}"


# =============================================================================
# Development Status
# =============================================================================

class DevCategory(str, Enum):
    """Area of work a development status belongs to"""
    INFRASTRUCTURE = "infrastructure"
    CONSTRUCTION = "construction"
    LEGAL = "legal"
    PLANNING = "planning"
    SERVICES = "services"
    COMPLETION = "completion"


class DevPhase(str, Enum):
    """Development phases, in project order"""
    PRE_CONSTRUCTION = "pre_construction"
    CONSTRUCTION = "construction"
    POST_CONSTRUCTION = "post_construction"
    COMPLETION = "completion"


# Inclusive percentage_complete band per phase
DEV_PHASE_PERCENTAGES: Mapping[DevPhase, Tuple[int, int]] = MappingProxyType({
    DevPhase.PRE_CONSTRUCTION: (0, 30),
    DevPhase.CONSTRUCTION: (31, 80),
    DevPhase.POST_CONSTRUCTION: (81, 99),
    DevPhase.COMPLETION: (100, 100),
})

DEV_PHASE_NAMES: Mapping[DevPhase, str] = MappingProxyType({
    DevPhase.PRE_CONSTRUCTION: "Pre-Construction",
    DevPhase.CONSTRUCTION: "Construction",
    DevPhase.POST_CONSTRUCTION: "Post-Construction",
    DevPhase.COMPLETION: "Completion",
})

# Rules returned when the target development status requires documentation
DEV_DOCUMENTATION_RULES: Tuple[_Rule, ...] = (
    _rule("documents", "Documentation is required for this status"),
    _rule("remarks", "Remarks are required for status change"),
)


def check_phase_percentage(phase: str, percentage: int) -> Optional[str]:
    """Return an error message when ``percentage`` falls outside the phase band"""
    try:
        limits = DEV_PHASE_PERCENTAGES[DevPhase(phase)]
    except ValueError:
        return None
    low, high = limits
    if percentage < low or percentage > high:
        return f"Percentage for {DevPhase(phase).value} phase must be between {low} and {high}"
    return None


def format_estimated_duration(days: int) -> str:
    """Human readable duration: '1 day', '12 days', '1 month', '4 months'"""
    if not days or days <= 0:
        return "No estimate"
    if days == 1:
        return "1 day"
    if days < 30:
        return f"{days} days"
    months = int(days / 30 + 0.5)
    return "1 month" if months == 1 else f"{months} months"
