from django.urls import path
from simulator.api.views import (
    SimulationView,
    WipeDataView,
    SeedDataView,
    ScenarioView,
    RandomMemberView,
    RandomClassView,
    SyncStatusesView,
)

app_name = 'simulator_api'

urlpatterns = [
    path('', SimulationView.as_view(), name='simulation'),
    path('wipe/', WipeDataView.as_view(), name='wipe'),
    path('seed/', SeedDataView.as_view(), name='seed'),
    path('scenarios/', ScenarioView.as_view(), name='scenarios'),
    path('random-member/', RandomMemberView.as_view(), name='random-member'),
    path('random-class/', RandomClassView.as_view(), name='random-class'),
    path('sync-statuses/', SyncStatusesView.as_view(), name='sync-statuses'),
]
