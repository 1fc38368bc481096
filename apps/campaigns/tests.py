from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework import status

from apps.campaigns.models import Program, Campaign

User = get_user_model()


class ReferenceListTestCase(TestCase):
    """Test cases for program and campaign reference lists"""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="staff@example.com", password="testpass123")
        self.client.force_authenticate(self.user)
        self.program = Program.objects.create(name="MBA", campus="Downtown")
        self.other_program = Program.objects.create(name="BSc Nursing")
        self.campaign = Campaign.objects.create(name="Fall Intake", type="DIGITAL", program=self.program)
        Campaign.objects.create(name="Open Day", program=self.other_program)

    def test_program_string_representation(self):
        self.assertEqual(str(self.program), "MBA (Downtown)")
        self.assertEqual(str(self.other_program), "BSc Nursing")

    def test_list_programs(self):
        response = self.client.get("/api/programs/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p["name"] for p in response.data], ["BSc Nursing", "MBA"])

    def test_filter_campaigns_by_program(self):
        response = self.client.get("/api/campaigns/", {"program": self.program.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["name"], "Fall Intake")
