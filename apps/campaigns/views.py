from rest_framework import generics
from rest_framework.permissions import IsAuthenticated

from .models import Program, Campaign
from .serializers import ProgramSerializer, CampaignSerializer


class ProgramListView(generics.ListAPIView):
    serializer_class = ProgramSerializer
    permission_classes = [IsAuthenticated]
    queryset = Program.objects.all()


class CampaignListView(generics.ListAPIView):
    serializer_class = CampaignSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = Campaign.objects.select_related('program')
        program_id = self.request.query_params.get('program')
        if program_id:
            queryset = queryset.filter(program_id=program_id)
        return queryset
