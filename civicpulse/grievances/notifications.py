from django.conf import settings
from django.core.mail import send_mail


def _display(status: str) -> str:
    return str(status).replace("_", " ").title()


def send_submission_email(grievance):
    citizen = grievance.citizen
    if not citizen.email:
        return
    send_mail(
        subject=f"Grievance Submitted: {grievance.reference_id}",
        message=(
            f"Dear {citizen},\n\n"
            f"Your grievance has been submitted successfully.\n"
            f"Reference ID: {grievance.reference_id}\n"
            f"Status: {grievance.get_status_display()}\n\n"
            "It will be reviewed by the verification team shortly."
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[citizen.email],
        fail_silently=True,
    )


def send_status_change_email(grievance, old_status, new_status):
    citizen = grievance.citizen
    if not citizen.email or old_status == new_status:
        return
    send_mail(
        subject=f"Grievance Status Updated: {grievance.reference_id}",
        message=(
            f"Dear {citizen},\n\n"
            f"Your grievance {grievance.reference_id} status changed from "
            f"{_display(old_status)} to {_display(new_status)}.\n\n"
            "Thank you."
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[citizen.email],
        fail_silently=True,
    )
