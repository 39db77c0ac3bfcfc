"""Rule-based RFM segment definitions and classification.

Segments are defined by inclusive 1-5 score ranges on each RFM dimension.
The rule table is ordered and classification is first-match-wins: a score
triple that satisfies several definitions (e.g. 555 matches both Champions
and Loyal Customers) is assigned to the one listed first. Triples that match
no definition fall back to an average-score heuristic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

MIN_SCORE = 1
MAX_SCORE = 5

ScoreRange = tuple[int, int]


@dataclass(frozen=True)
class SegmentDefinition:
    """Static description of one marketing segment.

    Attributes
    ----------
    name:
        Segment name shown to users.
    r_range, f_range, m_range:
        Inclusive (low, high) score bounds for recency, frequency and
        monetary.
    color:
        Presentation color token.
    treatment:
        One-line description of how the segment should be treated.
    actions:
        Recommended marketing actions.
    retention_rate:
        Nominal retention percentage. A fixed planning assumption, not
        derived from transaction data.
    """

    name: str
    r_range: ScoreRange
    f_range: ScoreRange
    m_range: ScoreRange
    color: str
    treatment: str
    actions: tuple[str, ...]
    retention_rate: int

    def __post_init__(self) -> None:
        for range_name, (low, high) in [
            ("r_range", self.r_range),
            ("f_range", self.f_range),
            ("m_range", self.m_range),
        ]:
            if not MIN_SCORE <= low <= high <= MAX_SCORE:
                raise ValueError(
                    f"{range_name} must satisfy {MIN_SCORE} <= low <= high <= {MAX_SCORE}: "
                    f"({low}, {high}) (segment={self.name})"
                )
        if not 0 <= self.retention_rate <= 100:
            raise ValueError(
                f"retention_rate must be 0-100: {self.retention_rate} (segment={self.name})"
            )

    def matches(self, r_score: int, f_score: int, m_score: int) -> bool:
        """Return True when every score falls inside its inclusive range."""

        return (
            self.r_range[0] <= r_score <= self.r_range[1]
            and self.f_range[0] <= f_score <= self.f_range[1]
            and self.m_range[0] <= m_score <= self.m_range[1]
        )


# Order is significant: classify_segment() returns the first match.
SEGMENT_DEFINITIONS: tuple[SegmentDefinition, ...] = (
    SegmentDefinition(
        name="Champions",
        r_range=(4, 5),
        f_range=(4, 5),
        m_range=(4, 5),
        color="hsl(var(--chart-1))",
        treatment="Reward & Retain",
        actions=("VIP programs", "Early access", "Referral incentives"),
        retention_rate=95,
    ),
    SegmentDefinition(
        name="Loyal Customers",
        r_range=(3, 5),
        f_range=(3, 5),
        m_range=(3, 5),
        color="hsl(var(--chart-2))",
        treatment="Upsell & Cross-sell",
        actions=("Product recommendations", "Loyalty rewards"),
        retention_rate=82,
    ),
    SegmentDefinition(
        name="Potential Loyalists",
        r_range=(4, 5),
        f_range=(1, 3),
        m_range=(1, 3),
        color="hsl(var(--chart-5))",
        treatment="Nurture & Engage",
        actions=("Welcome series", "Educational content", "Incentives"),
        retention_rate=68,
    ),
    SegmentDefinition(
        name="At Risk",
        r_range=(1, 2),
        f_range=(4, 5),
        m_range=(4, 5),
        color="hsl(var(--chart-3))",
        treatment="Win Back Campaigns",
        actions=("Re-engagement emails", "Special offers", "Surveys"),
        retention_rate=45,
    ),
    SegmentDefinition(
        name="Can't Lose Them",
        r_range=(1, 2),
        f_range=(3, 5),
        m_range=(4, 5),
        color="hsl(var(--chart-4))",
        treatment="Aggressive Retention",
        actions=("Personal outreach", "Exclusive deals", "Feedback"),
        retention_rate=38,
    ),
    SegmentDefinition(
        name="Hibernating",
        r_range=(1, 2),
        f_range=(2, 3),
        m_range=(2, 3),
        color="hsl(var(--chart-6))",
        treatment="Reactivation",
        actions=("Winback campaigns", "Surveys"),
        retention_rate=22,
    ),
    SegmentDefinition(
        name="New Customers",
        r_range=(4, 5),
        f_range=(1, 1),
        m_range=(1, 2),
        color="hsl(var(--chart-7))",
        treatment="Onboarding & Activation",
        actions=("Welcome bonus", "Tutorials", "First purchase incentives"),
        retention_rate=58,
    ),
    SegmentDefinition(
        name="Lost Customers",
        r_range=(1, 2),
        f_range=(1, 2),
        m_range=(1, 2),
        color="hsl(var(--chart-8))",
        treatment="Low-effort Retention",
        actions=("Minimal spend", "Occasional check-ins"),
        retention_rate=5,
    ),
)


def fallback_segment(r_score: int, f_score: int, m_score: int) -> str:
    """Segment for score triples that no rule in the table matches."""

    avg_score = (r_score + f_score + m_score) / 3
    if avg_score >= 4:
        return "Champions"
    if avg_score >= 3:
        return "Loyal Customers"
    if avg_score >= 2:
        return "Hibernating"
    return "Lost Customers"


def classify_segment(
    r_score: int,
    f_score: int,
    m_score: int,
    definitions: Sequence[SegmentDefinition] = SEGMENT_DEFINITIONS,
) -> str:
    """Assign a segment name to an RFM score triple.

    Definitions are scanned top to bottom and the first one whose three
    ranges all contain the scores wins. If none matches, the average of the
    three scores decides (see :func:`fallback_segment`).

    Examples
    --------
    >>> classify_segment(5, 5, 5)
    'Champions'
    >>> classify_segment(3, 1, 5)  # no rule matches, average 3.0
    'Loyal Customers'
    """

    for definition in definitions:
        if definition.matches(r_score, f_score, m_score):
            return definition.name
    return fallback_segment(r_score, f_score, m_score)


def get_segment_definition(
    name: str, definitions: Sequence[SegmentDefinition] = SEGMENT_DEFINITIONS
) -> SegmentDefinition:
    """Look up a segment definition by name.

    Raises
    ------
    KeyError
        If no definition has the given name.
    """

    for definition in definitions:
        if definition.name == name:
            return definition
    raise KeyError(f"Unknown segment: {name!r}")
