from django.urls import path

from .views import ProgramListView, CampaignListView

urlpatterns = [
    path('programs/', ProgramListView.as_view(), name='program-list'),
    path('campaigns/', CampaignListView.as_view(), name='campaign-list'),
]
