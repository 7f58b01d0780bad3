from django import forms
from django.core.exceptions import ValidationError

from .models import Grievance


class GrievanceForm(forms.ModelForm):
    class Meta:
        model = Grievance
        fields = ["title", "category", "location", "description", "latitude", "longitude"]

    def clean_category(self):
        return self.cleaned_data["category"].strip()

    def clean_location(self):
        return self.cleaned_data["location"].strip()

    def clean(self):
        cleaned_data = super().clean()
        latitude = cleaned_data.get("latitude")
        longitude = cleaned_data.get("longitude")
        if (latitude is None) != (longitude is None):
            raise ValidationError("Latitude and longitude must be provided together.")
        if latitude is not None and not -90 <= latitude <= 90:
            self.add_error("latitude", "Latitude must be between -90 and 90.")
        if longitude is not None and not -180 <= longitude <= 180:
            self.add_error("longitude", "Longitude must be between -180 and 180.")
        return cleaned_data


class VerificationForm(forms.Form):
    approved = forms.BooleanField(required=False)
    reason = forms.CharField(required=False)


class AssignmentForm(forms.Form):
    officer_id = forms.IntegerField(min_value=1)


class StatusUpdateForm(forms.Form):
    status = forms.CharField(max_length=20)

    def clean_status(self):
        return self.cleaned_data["status"].strip()


class FeedbackForm(forms.Form):
    rating = forms.IntegerField()
    comment = forms.CharField(required=False)


class ReopenForm(forms.Form):
    reason = forms.CharField(required=False)

    def clean_reason(self):
        reason = self.cleaned_data.get("reason", "").strip()
        if reason and len(reason) < 3:
            raise ValidationError("Reason must be at least 3 characters.")
        return reason
