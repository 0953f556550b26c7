from django.urls import path
from members.api.views import (
    MemberListCreateView,
    MemberRetrieveUpdateDestroyView,
    MemberFreezeView,
    MemberUnfreezeView,
    MemberFreezeListView,
    OverdueMemberListView,
)

app_name = 'members_api'

urlpatterns = [
    path('', MemberListCreateView.as_view(), name='member-list-create'),
    path('overdue/', OverdueMemberListView.as_view(), name='member-overdue'),
    path('<int:pk>/', MemberRetrieveUpdateDestroyView.as_view(), name='member-retrieve-update-destroy'),
    path('<int:pk>/freeze/', MemberFreezeView.as_view(), name='member-freeze'),
    path('<int:pk>/unfreeze/', MemberUnfreezeView.as_view(), name='member-unfreeze'),
    path('<int:pk>/freezes/', MemberFreezeListView.as_view(), name='member-freezes'),
]
