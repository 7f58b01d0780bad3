from django.conf import settings
from django.core.management.base import BaseCommand

from grievances import lifecycle
from grievances.models import Grievance, User


class Command(BaseCommand):
    help = "Seed the database with sample users and grievances."

    def get_or_create_user(self, username, password, **defaults):
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com", **defaults},
        )
        if created:
            user.set_password(password)
            user.save()
        return user

    def handle(self, *args, **options):
        self.get_or_create_user(
            "portal_admin",
            "AdminPass123!",
            name="Portal Admin",
            role=User.Role.ADMIN,
            is_staff=True,
        )
        citizen = self.get_or_create_user(
            "citizen_user",
            "CitizenPass123!",
            name="Citizen User",
            role=User.Role.CITIZEN,
        )
        officers = {}
        for department in settings.GRIEVANCE_SLA_TARGETS:
            username = "officer_" + department.lower().replace(" ", "_")
            officers[department] = self.get_or_create_user(
                username,
                "OfficerPass123!",
                name=f"{department} Officer",
                role=User.Role.OFFICER,
                department=department,
            )

        sample_definitions = [
            {
                "title": "Overflowing Garbage Bins",
                "description": "Municipal bins are not being cleared regularly in Zone 2.",
                "category": "Sanitation",
                "location": "Zone 2 - Main Street",
                "latitude": 12.9716,
                "longitude": 77.5946,
                "stage": "pending",
            },
            {
                "title": "Potholes on City Road",
                "description": "Large potholes causing traffic congestion and accidents.",
                "category": "Road",
                "location": "Ring Road Block A",
                "stage": "assigned",
            },
            {
                "title": "Streetlights Not Working",
                "description": "Streetlights remain off at night near public park.",
                "category": "Street Light",
                "location": "Public Park Road",
                "stage": "resolved",
            },
            {
                "title": "Low Water Pressure",
                "description": "Water supply has been weak for a week.",
                "category": "Water",
                "location": "Zone 2 - Main Street",
                "stage": "assigned",
            },
        ]

        created_count = 0
        for item in sample_definitions:
            item = dict(item)
            stage = item.pop("stage")
            if Grievance.objects.filter(citizen=citizen, title=item["title"]).exists():
                continue
            grievance = lifecycle.submit_grievance(citizen, **item)
            created_count += 1
            if stage == "pending":
                continue
            lifecycle.verify_grievance(grievance.pk, approved=True, reason="Verified during seeding.")
            lifecycle.assign_grievance(grievance.pk, officers[grievance.category].pk)
            if stage == "resolved":
                lifecycle.update_status(grievance.pk, Grievance.Status.RESOLVED)

        self.stdout.write(self.style.SUCCESS("Seed complete."))
        self.stdout.write(
            self.style.WARNING(
                "Credentials: citizen_user / CitizenPass123!, "
                "portal_admin / AdminPass123!, officer_<department> / OfficerPass123!"
            )
        )
        self.stdout.write(self.style.SUCCESS(f"New grievances created: {created_count}"))
