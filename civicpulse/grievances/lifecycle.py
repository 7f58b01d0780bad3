import logging

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from .exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    PreconditionFailedError,
)
from .feedback import validate_rating
from .models import Feedback, Grievance, User
from .notifications import send_status_change_email, send_submission_email

logger = logging.getLogger(__name__)

REQUIRED_GRIEVANCE_FIELDS = ("title", "category", "location")


def _locked_grievance(grievance_id) -> Grievance:
    try:
        return Grievance.objects.select_for_update().get(pk=grievance_id)
    except Grievance.DoesNotExist:
        raise NotFoundError(
            f"Grievance {grievance_id} not found.",
            details={"grievance_id": grievance_id},
        ) from None


def _get_user(user_id, label="User") -> User:
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFoundError(f"{label} {user_id} not found.", details={"user_id": user_id})
    return user


def parse_status(value) -> str:
    try:
        return Grievance.Status(value)
    except ValueError:
        raise InvalidArgumentError(
            f"Unknown grievance status: {value!r}.",
            details={"allowed": list(Grievance.Status.values)},
        ) from None


def submit_grievance(citizen, **fields) -> Grievance:
    if citizen.role != User.Role.CITIZEN or not citizen.is_active:
        raise InvalidArgumentError("Only active citizens can submit grievances.")
    missing = [name for name in REQUIRED_GRIEVANCE_FIELDS if not str(fields.get(name) or "").strip()]
    if missing:
        raise InvalidArgumentError("Missing required grievance fields.", details={"missing": missing})

    grievance = Grievance.objects.create(
        citizen=citizen,
        status=Grievance.Status.PENDING,
        verification_status=Grievance.VerificationStatus.PENDING,
        feedback_submitted=False,
        **fields,
    )
    logger.info("Grievance %s submitted by user %s", grievance.reference_id, citizen.pk)
    send_submission_email(grievance)
    return grievance


def verify_grievance(grievance_id, approved: bool, reason: str = "") -> Grievance:
    reason = (reason or "").strip()
    with transaction.atomic():
        grievance = _locked_grievance(grievance_id)
        previous_status = grievance.status
        if grievance.verification_status != Grievance.VerificationStatus.PENDING:
            logger.warning(
                "Verification refused for grievance %s: already %s",
                grievance.pk,
                grievance.verification_status,
            )
            raise PreconditionFailedError(
                "Grievance has already been verified.",
                details={"verification_status": grievance.verification_status},
            )
        if not approved and not reason:
            raise InvalidArgumentError("A reason is required to reject a grievance.")

        if approved:
            grievance.verification_status = Grievance.VerificationStatus.APPROVED
            grievance.verification_reason = reason
        else:
            grievance.verification_status = Grievance.VerificationStatus.REJECTED
            grievance.status = Grievance.Status.REJECTED
            grievance.rejection_reason = reason
        grievance.save()

    logger.info("Grievance %s verification set to %s", grievance.pk, grievance.verification_status)
    send_status_change_email(grievance, previous_status, grievance.status)
    return grievance


def assign_grievance(grievance_id, officer_id) -> Grievance:
    with transaction.atomic():
        grievance = _locked_grievance(grievance_id)
        previous_status = grievance.status
        if grievance.verification_status != Grievance.VerificationStatus.APPROVED:
            logger.warning("Assignment refused for unverified grievance %s", grievance.pk)
            raise PreconditionFailedError(
                "Cannot assign an unverified grievance.",
                details={"verification_status": grievance.verification_status},
            )
        if grievance.is_terminal:
            raise PreconditionFailedError(
                f"Cannot assign a grievance in {grievance.status} status.",
                details={"status": grievance.status},
            )
        officer = _get_user(officer_id, label="Officer")
        if officer.role != User.Role.OFFICER or not officer.is_active:
            raise InvalidArgumentError(
                "Grievances can only be assigned to active officers.",
                details={"officer_id": officer.pk, "role": officer.role},
            )

        grievance.assigned_officer = officer
        grievance.status = Grievance.Status.IN_PROGRESS
        grievance.save()

    logger.info("Grievance %s assigned to officer %s", grievance.pk, officer.pk)
    send_status_change_email(grievance, previous_status, grievance.status)
    return grievance


def update_status(grievance_id, new_status) -> Grievance:
    status = parse_status(new_status)
    with transaction.atomic():
        grievance = _locked_grievance(grievance_id)
        if grievance.is_terminal:
            logger.warning("Status change refused for grievance %s in %s", grievance.pk, grievance.status)
            raise PreconditionFailedError(
                f"Grievance is {grievance.status} and can no longer change status.",
                details={"status": grievance.status},
            )
        if (
            status == Grievance.Status.RESOLVED
            and grievance.verification_status != Grievance.VerificationStatus.APPROVED
        ):
            raise PreconditionFailedError(
                "Only verified grievances can be resolved.",
                details={"verification_status": grievance.verification_status},
            )

        previous_status = grievance.status
        grievance.status = status
        if status == Grievance.Status.RESOLVED:
            grievance.resolved_at = timezone.now()
        grievance.save()

    logger.info("Grievance %s status changed from %s to %s", grievance.pk, previous_status, status)
    send_status_change_email(grievance, previous_status, status)
    return grievance


def submit_feedback(grievance_id, user_id, rating, comment: str = "") -> Feedback:
    rating = validate_rating(rating)
    with transaction.atomic():
        grievance = _locked_grievance(grievance_id)
        if not grievance.is_owned_by(user_id):
            logger.warning("User %s may not give feedback on grievance %s", user_id, grievance.pk)
            raise ForbiddenError("You can only give feedback on your own grievances.")
        if grievance.status != Grievance.Status.RESOLVED:
            raise PreconditionFailedError(
                "Feedback can only be submitted for resolved grievances.",
                details={"status": grievance.status},
            )
        if grievance.feedback_submitted or Feedback.objects.filter(grievance_id=grievance.pk).exists():
            logger.warning("Duplicate feedback refused for grievance %s", grievance.pk)
            raise ConflictError("Feedback already submitted for this grievance.")

        feedback = Feedback.objects.create(
            grievance=grievance,
            citizen_id=grievance.citizen_id,
            rating=rating,
            comment=(comment or "").strip(),
            is_reopened=False,
        )
        grievance.feedback_submitted = True
        grievance.save()

    logger.info("Feedback %s recorded for grievance %s (rating %s)", feedback.pk, grievance.pk, rating)
    return feedback


def reopen_grievance(grievance_id, requesting_user_id, reason: str = "") -> Grievance:
    with transaction.atomic():
        grievance = _locked_grievance(grievance_id)
        previous_status = grievance.status
        if not grievance.is_owned_by(requesting_user_id):
            logger.warning("User %s may not reopen grievance %s", requesting_user_id, grievance.pk)
            raise ForbiddenError("You can only reopen your own grievances.")

        grievance.status = Grievance.Status.PENDING
        grievance.verification_status = Grievance.VerificationStatus.PENDING
        grievance.feedback_submitted = False
        grievance.resolved_at = None
        grievance.assigned_officer = None
        grievance.reopen_reason = (reason or "").strip()
        grievance.save()
        reopened = Feedback.objects.filter(grievance_id=grievance.pk).update(is_reopened=True)

    logger.info("Grievance %s reopened (feedback rows flagged: %s)", grievance.pk, reopened)
    send_status_change_email(grievance, previous_status, grievance.status)
    return grievance


def pending_verification():
    return Grievance.objects.select_related("citizen").filter(
        verification_status=Grievance.VerificationStatus.PENDING,
    )


def grievances_for_department(officer):
    if not officer.department:
        return Grievance.objects.none()
    return Grievance.objects.select_related("citizen", "assigned_officer").filter(
        category__iexact=officer.department,
    )


def grievances_assigned_to(officer_id):
    return Grievance.objects.select_related("citizen").filter(assigned_officer_id=officer_id)


def citizen_summary(citizen_id) -> dict:
    return Grievance.objects.filter(citizen_id=citizen_id).aggregate(
        total=Count("pk"),
        pending=Count(
            "pk",
            filter=Q(status__in=[Grievance.Status.PENDING, Grievance.Status.IN_PROGRESS]),
        ),
        resolved=Count("pk", filter=Q(status=Grievance.Status.RESOLVED)),
    )
