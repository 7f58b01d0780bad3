from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from django.db.models import Avg, Count

from .exceptions import InvalidArgumentError
from .models import Feedback, Grievance

MIN_RATING = 1
MAX_RATING = 5


def round_half_up(value: float, places: int = 0) -> float:
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidArgumentError(
            "Rating must be an integer between 1 and 5.",
            details={"rating": rating},
        )
    if rating < MIN_RATING or rating > MAX_RATING:
        raise InvalidArgumentError(
            "Rating must be between 1 and 5.",
            details={"rating": rating},
        )
    return rating


@dataclass(frozen=True)
class FeedbackStats:
    total_resolved: int = 0
    feedback_received: int = 0
    pending_feedback: int = 0
    reopened_count: int = 0
    average_rating: float = 0.0
    feedback_rate: int = 0
    rating_distribution: Dict[int, int] = field(default_factory=dict)

    def as_dict(self):
        return asdict(self)


def feedback_for_grievance(grievance_id) -> Optional[Feedback]:
    return Feedback.objects.select_related("citizen").filter(grievance_id=grievance_id).first()


def feedback_by_citizen(citizen_id):
    return Feedback.objects.select_related("grievance").filter(citizen_id=citizen_id)


def all_feedback():
    return Feedback.objects.select_related("grievance", "citizen").order_by("-created_at", "-pk")


def reopened_feedback():
    return all_feedback().filter(is_reopened=True)


def pending_feedback():
    return (
        Grievance.objects.select_related("citizen")
        .filter(status=Grievance.Status.RESOLVED, feedback__isnull=True)
        .order_by("resolved_at", "pk")
    )


def rating_distribution() -> Dict[int, int]:
    distribution = {rating: 0 for rating in range(MIN_RATING, MAX_RATING + 1)}
    for row in Feedback.objects.order_by().values("rating").annotate(total=Count("pk")):
        distribution[row["rating"]] = row["total"]
    return distribution


def feedback_stats() -> FeedbackStats:
    total_resolved = Grievance.objects.filter(status=Grievance.Status.RESOLVED).count()
    feedback_received = Feedback.objects.count()
    average = Feedback.objects.aggregate(value=Avg("rating"))["value"]
    if total_resolved:
        feedback_rate = int(round_half_up(feedback_received / total_resolved * 100))
    else:
        feedback_rate = 0

    return FeedbackStats(
        total_resolved=total_resolved,
        feedback_received=feedback_received,
        pending_feedback=pending_feedback().count(),
        reopened_count=Feedback.objects.filter(is_reopened=True).count(),
        average_rating=round_half_up(average, 1) if average is not None else 0.0,
        feedback_rate=feedback_rate,
        rating_distribution=rating_distribution(),
    )
