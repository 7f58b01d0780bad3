from django.urls import path

from .views import (
    CategoryDistributionView,
    CitizenSummaryView,
    DashboardView,
    FeedbackListView,
    FeedbackStatsView,
    GrievanceAssignView,
    GrievanceDetailView,
    GrievanceFeedbackView,
    GrievanceListCreateView,
    GrievanceReopenView,
    GrievanceStatusUpdateView,
    GrievanceVerifyView,
    MyFeedbackView,
    OfficerQueueView,
    PendingFeedbackView,
    PendingVerificationView,
    RedZoneView,
    ReopenedFeedbackView,
    SlaPerformanceView,
    ZoneDistributionView,
)

app_name = "grievances"

urlpatterns = [
    path("grievances/", GrievanceListCreateView.as_view(), name="grievance_list"),
    path("grievances/pending-verification/", PendingVerificationView.as_view(), name="pending_verification"),
    path("grievances/summary/", CitizenSummaryView.as_view(), name="citizen_summary"),
    path("grievances/<int:pk>/", GrievanceDetailView.as_view(), name="grievance_detail"),
    path("grievances/<int:pk>/verify/", GrievanceVerifyView.as_view(), name="grievance_verify"),
    path("grievances/<int:pk>/assign/", GrievanceAssignView.as_view(), name="grievance_assign"),
    path("grievances/<int:pk>/status/", GrievanceStatusUpdateView.as_view(), name="grievance_status"),
    path("grievances/<int:pk>/feedback/", GrievanceFeedbackView.as_view(), name="grievance_feedback"),
    path("grievances/<int:pk>/reopen/", GrievanceReopenView.as_view(), name="grievance_reopen"),
    path("officer/grievances/", OfficerQueueView.as_view(), name="officer_queue"),
    path("feedback/", FeedbackListView.as_view(), name="feedback_list"),
    path("feedback/mine/", MyFeedbackView.as_view(), name="my_feedback"),
    path("feedback/pending/", PendingFeedbackView.as_view(), name="pending_feedback"),
    path("feedback/reopened/", ReopenedFeedbackView.as_view(), name="reopened_feedback"),
    path("feedback/stats/", FeedbackStatsView.as_view(), name="feedback_stats"),
    path("analytics/dashboard/", DashboardView.as_view(), name="analytics_dashboard"),
    path("analytics/categories/", CategoryDistributionView.as_view(), name="analytics_categories"),
    path("analytics/zones/", ZoneDistributionView.as_view(), name="analytics_zones"),
    path("analytics/sla/", SlaPerformanceView.as_view(), name="analytics_sla"),
    path("analytics/red-zones/", RedZoneView.as_view(), name="analytics_red_zones"),
]
