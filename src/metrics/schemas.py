"""Schema definitions for per-edition metric snapshots.

An ``EditionMetrics`` snapshot is produced by the metrics provider from
raw business records and is treated as immutable once fetched. Monetary
amounts are integer minor units (cents) with a three-letter currency code.
"""

import enum
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol


class MetricSource(str, enum.Enum):
    """Closed set of scalar metrics a threshold can watch."""

    # CFP
    CFP_SUBMISSIONS = "cfp_submissions"
    CFP_REVIEWS = "cfp_reviews"
    CFP_ACCEPTANCE_RATE = "cfp_acceptance_rate"
    # Billing
    BILLING_SALES = "billing_sales"
    BILLING_REVENUE = "billing_revenue"
    BILLING_STOCK = "billing_stock"
    BILLING_CAPACITY = "billing_capacity"
    # CRM
    CRM_CONTACTS = "crm_contacts"
    CRM_ENGAGEMENT = "crm_engagement"
    CRM_CAMPAIGNS = "crm_campaigns"
    # Budget
    BUDGET_VARIANCE = "budget_variance"
    BUDGET_UTILIZATION = "budget_utilization"
    BUDGET_CASHFLOW = "budget_cashflow"
    # Planning
    PLANNING_SESSIONS = "planning_sessions"
    PLANNING_CONFLICTS = "planning_conflicts"
    PLANNING_OCCUPANCY = "planning_occupancy"
    # Sponsoring
    SPONSORING_REVENUE = "sponsoring_revenue"
    SPONSORING_PIPELINE = "sponsoring_pipeline"


VALID_METRIC_SOURCES: frozenset[str] = frozenset(s.value for s in MetricSource)

METRIC_SOURCE_LABELS: dict[MetricSource, str] = {
    MetricSource.CFP_SUBMISSIONS: "CFP - Submissions",
    MetricSource.CFP_REVIEWS: "CFP - Pending Reviews",
    MetricSource.CFP_ACCEPTANCE_RATE: "CFP - Acceptance Rate",
    MetricSource.BILLING_SALES: "Billing - Ticket Sales",
    MetricSource.BILLING_REVENUE: "Billing - Revenue",
    MetricSource.BILLING_STOCK: "Billing - Tickets Available",
    MetricSource.BILLING_CAPACITY: "Billing - Capacity",
    MetricSource.CRM_CONTACTS: "CRM - Contacts",
    MetricSource.CRM_ENGAGEMENT: "CRM - Engagement",
    MetricSource.CRM_CAMPAIGNS: "CRM - Campaigns",
    MetricSource.BUDGET_VARIANCE: "Budget - Variance",
    MetricSource.BUDGET_UTILIZATION: "Budget - Utilization",
    MetricSource.BUDGET_CASHFLOW: "Budget - Cash Flow",
    MetricSource.PLANNING_SESSIONS: "Planning - Sessions",
    MetricSource.PLANNING_CONFLICTS: "Planning - Conflicts",
    MetricSource.PLANNING_OCCUPANCY: "Planning - Occupancy",
    MetricSource.SPONSORING_REVENUE: "Sponsoring - Revenue",
    MetricSource.SPONSORING_PIPELINE: "Sponsoring - Pipeline",
}


def get_metric_source_label(source: MetricSource | str) -> str:
    """Human-readable label, falling back to the raw identifier."""
    try:
        return METRIC_SOURCE_LABELS[MetricSource(source)]
    except ValueError:
        return str(source)


@dataclass(frozen=True)
class BillingMetrics:
    total_revenue: int = 0
    currency: str = "EUR"
    tickets_sold: int = 0
    tickets_available: int = 0
    orders_count: int = 0
    paid_orders_count: int = 0
    check_in_rate: float = 0.0
    tickets_checked_in: int = 0


@dataclass(frozen=True)
class CfpMetrics:
    total_submissions: int = 0
    pending_reviews: int = 0
    accepted_talks: int = 0
    rejected_talks: int = 0
    speakers_count: int = 0
    average_rating: float = 0.0


@dataclass(frozen=True)
class PlanningMetrics:
    total_sessions: int = 0
    scheduled_sessions: int = 0
    unscheduled_sessions: int = 0
    tracks_count: int = 0
    rooms_count: int = 0
    slots_used: int = 0
    slots_available: int = 0


@dataclass(frozen=True)
class CrmMetrics:
    """CRM activity. ``open_rate`` and ``click_rate`` are fractions (0-1)."""

    total_contacts: int = 0
    new_contacts_this_week: int = 0
    emails_sent: int = 0
    open_rate: float = 0.0
    click_rate: float = 0.0


@dataclass(frozen=True)
class SponsoringMetrics:
    total_sponsors: int = 0
    confirmed_sponsors: int = 0
    pending_sponsors: int = 0
    total_sponsorship_value: int = 0
    currency: str = "EUR"


@dataclass(frozen=True)
class BudgetMetrics:
    total_budget: int = 0
    spent: int = 0
    remaining: int = 0
    currency: str = "EUR"
    transactions_count: int = 0


@dataclass(frozen=True)
class EditionMetrics:
    """Aggregate of the six domain sub-metrics for one edition.

    Attributes:
        billing: Ticketing and order figures.
        cfp: Call-for-papers submissions and review progress.
        planning: Session scheduling and room usage.
        crm: Contact base and campaign engagement.
        sponsoring: Sponsor pipeline and confirmed value.
        budget: Budget envelope and spend.
        last_updated: When the provider computed this snapshot.
    """

    billing: BillingMetrics = field(default_factory=BillingMetrics)
    cfp: CfpMetrics = field(default_factory=CfpMetrics)
    planning: PlanningMetrics = field(default_factory=PlanningMetrics)
    crm: CrmMetrics = field(default_factory=CrmMetrics)
    sponsoring: SponsoringMetrics = field(default_factory=SponsoringMetrics)
    budget: BudgetMetrics = field(default_factory=BudgetMetrics)
    last_updated: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @classmethod
    def empty(cls) -> "EditionMetrics":
        """Snapshot with every figure at zero."""
        return cls()

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        data = asdict(self)
        data["last_updated"] = self.last_updated.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EditionMetrics":
        """Build a snapshot from a dictionary; missing sections default to zero."""
        last_updated = data.get("last_updated")
        if isinstance(last_updated, str):
            last_updated = datetime.fromisoformat(last_updated)
        elif last_updated is None:
            last_updated = datetime.now(timezone.utc)

        return cls(
            billing=BillingMetrics(**data.get("billing", {})),
            cfp=CfpMetrics(**data.get("cfp", {})),
            planning=PlanningMetrics(**data.get("planning", {})),
            crm=CrmMetrics(**data.get("crm", {})),
            sponsoring=SponsoringMetrics(**data.get("sponsoring", {})),
            budget=BudgetMetrics(**data.get("budget", {})),
            last_updated=last_updated,
        )


@dataclass(frozen=True)
class MetricValue:
    """A scalar read from a snapshot, with its unit ("%", "EUR", or None)."""

    value: float
    unit: str | None = None


class MetricsProvider(Protocol):
    """Turns raw business records into a per-edition snapshot.

    Failures are transient: callers must not cache them.
    """

    async def fetch_metrics(self, edition_id: str) -> EditionMetrics:
        ...
