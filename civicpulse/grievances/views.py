import json
from datetime import datetime

from django.contrib.auth.mixins import LoginRequiredMixin, UserPassesTestMixin
from django.db.models import Q
from django.http import JsonResponse
from django.views import View

from . import analytics, feedback, lifecycle
from .exceptions import ForbiddenError, GrievanceError, InvalidArgumentError, NotFoundError
from .forms import (
    AssignmentForm,
    FeedbackForm,
    GrievanceForm,
    ReopenForm,
    StatusUpdateForm,
    VerificationForm,
)
from .models import Grievance


def apply_grievance_filters(queryset, params):
    query = params.get("q", "").strip()
    category = params.get("category", "").strip()
    status = params.get("status", "").strip()
    verification_status = params.get("verification_status", "").strip()
    start_date = params.get("start_date", "").strip()
    end_date = params.get("end_date", "").strip()

    if query:
        queryset = queryset.filter(
            Q(title__icontains=query)
            | Q(reference_id__icontains=query)
            | Q(location__icontains=query)
        )
    if category:
        queryset = queryset.filter(category__iexact=category)
    if status:
        queryset = queryset.filter(status=status)
    if verification_status:
        queryset = queryset.filter(verification_status=verification_status)

    if start_date:
        try:
            start_dt = datetime.strptime(start_date, "%Y-%m-%d").date()
            queryset = queryset.filter(created_at__date__gte=start_dt)
        except ValueError:
            pass
    if end_date:
        try:
            end_dt = datetime.strptime(end_date, "%Y-%m-%d").date()
            queryset = queryset.filter(created_at__date__lte=end_dt)
        except ValueError:
            pass
    return queryset


def serialize_user(user):
    if user is None:
        return None
    return {
        "id": user.pk,
        "name": str(user),
        "email": user.email,
        "role": user.role,
        "department": user.department,
    }


def serialize_grievance(grievance):
    return {
        "id": grievance.pk,
        "reference_id": grievance.reference_id,
        "title": grievance.title,
        "category": grievance.category,
        "location": grievance.location,
        "latitude": grievance.latitude,
        "longitude": grievance.longitude,
        "description": grievance.description,
        "status": grievance.status,
        "verification_status": grievance.verification_status,
        "citizen_id": grievance.citizen_id,
        "assigned_officer": serialize_user(grievance.assigned_officer),
        "feedback_submitted": grievance.feedback_submitted,
        "created_at": grievance.created_at,
        "updated_at": grievance.updated_at,
        "resolved_at": grievance.resolved_at,
        "reopen_reason": grievance.reopen_reason,
        "verification_reason": grievance.verification_reason,
        "rejection_reason": grievance.rejection_reason,
    }


def serialize_feedback(item):
    return {
        "id": item.pk,
        "grievance_id": item.grievance_id,
        "citizen_id": item.citizen_id,
        "rating": item.rating,
        "comment": item.comment,
        "is_reopened": item.is_reopened,
        "created_at": item.created_at,
    }


def results_response(items, serializer, status=200):
    return JsonResponse({"results": [serializer(item) for item in items]}, status=status)


def form_error_response(form):
    return JsonResponse(
        {
            "error": InvalidArgumentError.error_code,
            "detail": "Invalid input.",
            "details": form.errors.get_json_data(),
        },
        status=400,
    )


def request_payload(request):
    if request.content_type == "application/json":
        try:
            payload = json.loads(request.body or b"{}")
        except ValueError:
            raise InvalidArgumentError("Request body is not valid JSON.") from None
        if not isinstance(payload, dict):
            raise InvalidArgumentError("Request body must be a JSON object.")
        return payload
    return request.POST


def visible_grievance(user, grievance_id, queryset=None):
    queryset = queryset if queryset is not None else Grievance.objects.all()
    grievance = queryset.filter(pk=grievance_id).first()
    if grievance is None:
        raise NotFoundError(f"Grievance {grievance_id} not found.", details={"grievance_id": grievance_id})
    if not grievance.can_be_viewed_by(user):
        raise ForbiddenError("You do not have permission to view this grievance.")
    return grievance


class GrievanceErrorMixin:
    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except GrievanceError as error:
            return JsonResponse(error.as_dict(), status=error.status_code)

    def handle_no_permission(self):
        if self.request.user.is_authenticated:
            raise ForbiddenError("You do not have permission to perform this action.")
        raise ForbiddenError("Authentication credentials were not provided.")


class ApiLoginRequiredMixin(GrievanceErrorMixin, LoginRequiredMixin):
    raise_exception = True


class StaffRequiredMixin(GrievanceErrorMixin, LoginRequiredMixin, UserPassesTestMixin):
    raise_exception = True

    def test_func(self):
        return self.request.user.can_manage_grievances


class GrievanceListCreateView(ApiLoginRequiredMixin, View):
    def get(self, request):
        queryset = Grievance.objects.select_related("assigned_officer")
        if not request.user.can_manage_grievances:
            queryset = queryset.filter(citizen=request.user)
        queryset = apply_grievance_filters(queryset, request.GET)
        return results_response(queryset.order_by("-created_at", "-pk"), serialize_grievance)

    def post(self, request):
        form = GrievanceForm(request_payload(request))
        if not form.is_valid():
            return form_error_response(form)
        grievance = lifecycle.submit_grievance(request.user, **form.cleaned_data)
        return JsonResponse(serialize_grievance(grievance), status=201)


class GrievanceDetailView(ApiLoginRequiredMixin, View):
    def get(self, request, pk):
        grievance = visible_grievance(
            request.user,
            pk,
            Grievance.objects.select_related("citizen", "assigned_officer"),
        )
        return JsonResponse(serialize_grievance(grievance))


class GrievanceVerifyView(StaffRequiredMixin, View):
    def post(self, request, pk):
        form = VerificationForm(request_payload(request))
        if not form.is_valid():
            return form_error_response(form)
        grievance = lifecycle.verify_grievance(
            pk,
            approved=form.cleaned_data["approved"],
            reason=form.cleaned_data["reason"],
        )
        return JsonResponse(serialize_grievance(grievance))


class GrievanceAssignView(StaffRequiredMixin, View):
    def post(self, request, pk):
        form = AssignmentForm(request_payload(request))
        if not form.is_valid():
            return form_error_response(form)
        grievance = lifecycle.assign_grievance(pk, form.cleaned_data["officer_id"])
        return JsonResponse(serialize_grievance(grievance))


class GrievanceStatusUpdateView(StaffRequiredMixin, View):
    def post(self, request, pk):
        form = StatusUpdateForm(request_payload(request))
        if not form.is_valid():
            return form_error_response(form)
        grievance = lifecycle.update_status(pk, form.cleaned_data["status"])
        return JsonResponse(serialize_grievance(grievance))


class GrievanceFeedbackView(ApiLoginRequiredMixin, View):
    def get(self, request, pk):
        grievance = visible_grievance(request.user, pk)
        item = feedback.feedback_for_grievance(grievance.pk)
        if item is None:
            raise NotFoundError("No feedback has been submitted for this grievance.")
        return JsonResponse(serialize_feedback(item))

    def post(self, request, pk):
        form = FeedbackForm(request_payload(request))
        if not form.is_valid():
            return form_error_response(form)
        item = lifecycle.submit_feedback(
            pk,
            request.user.pk,
            form.cleaned_data["rating"],
            form.cleaned_data["comment"],
        )
        return JsonResponse(serialize_feedback(item), status=201)


class GrievanceReopenView(ApiLoginRequiredMixin, View):
    def post(self, request, pk):
        form = ReopenForm(request_payload(request))
        if not form.is_valid():
            return form_error_response(form)
        grievance = lifecycle.reopen_grievance(pk, request.user.pk, form.cleaned_data["reason"])
        return JsonResponse(serialize_grievance(grievance))


class PendingVerificationView(StaffRequiredMixin, View):
    def get(self, request):
        return results_response(lifecycle.pending_verification(), serialize_grievance)


class OfficerQueueView(StaffRequiredMixin, View):
    def get(self, request):
        if request.GET.get("scope") == "assigned":
            queryset = lifecycle.grievances_assigned_to(request.user.pk)
        else:
            queryset = lifecycle.grievances_for_department(request.user)
        return results_response(queryset, serialize_grievance)


class CitizenSummaryView(ApiLoginRequiredMixin, View):
    def get(self, request):
        return JsonResponse(lifecycle.citizen_summary(request.user.pk))


class MyFeedbackView(ApiLoginRequiredMixin, View):
    def get(self, request):
        return results_response(feedback.feedback_by_citizen(request.user.pk), serialize_feedback)


class FeedbackListView(StaffRequiredMixin, View):
    def get(self, request):
        return results_response(feedback.all_feedback(), serialize_feedback)


class ReopenedFeedbackView(StaffRequiredMixin, View):
    def get(self, request):
        return results_response(feedback.reopened_feedback(), serialize_feedback)


class PendingFeedbackView(StaffRequiredMixin, View):
    def get(self, request):
        return results_response(feedback.pending_feedback(), serialize_grievance)


class FeedbackStatsView(StaffRequiredMixin, View):
    def get(self, request):
        return JsonResponse(feedback.feedback_stats().as_dict())


class DashboardView(StaffRequiredMixin, View):
    def get(self, request):
        return JsonResponse(analytics.dashboard_stats().as_dict())


class CategoryDistributionView(StaffRequiredMixin, View):
    def get(self, request):
        return results_response(analytics.category_distribution(), lambda row: row.as_dict())


class ZoneDistributionView(StaffRequiredMixin, View):
    def get(self, request):
        return results_response(analytics.zone_distribution(), lambda row: row.as_dict())


class SlaPerformanceView(StaffRequiredMixin, View):
    def get(self, request):
        return results_response(analytics.sla_performance(), lambda row: row.as_dict())


class RedZoneView(StaffRequiredMixin, View):
    def get(self, request):
        return results_response(analytics.red_zones(), lambda row: row.as_dict())
