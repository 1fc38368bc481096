from django.urls import path

from .views import (
    DeleteNotificationView,
    MarkNotificationAsReadView,
    UserNotificationsView,
    MarkAllAsReadView,
    UnreadCountView,
)

urlpatterns = [
    path("notifications/", UserNotificationsView.as_view(), name="notifications-list"),
    path(
        "notifications/read-all/",
        MarkAllAsReadView.as_view(),
        name="notifications-mark-all-read",
    ),
    path(
        "notifications/unread-count/",
        UnreadCountView.as_view(),
        name="notifications-unread-count",
    ),
    path(
        "notifications/<int:pk>/read/",
        MarkNotificationAsReadView.as_view(),
        name="notifications-mark-read",
    ),
    path(
        "notifications/<int:pk>/",
        DeleteNotificationView.as_view(),
        name="notifications-delete",
    ),
]
