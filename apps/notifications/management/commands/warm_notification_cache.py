from django.core.management.base import BaseCommand

from apps.accounts.models import User
from apps.notifications.services import refresh_unread_count


class Command(BaseCommand):
    help = 'Recompute cached unread notification counts for one user or all users'

    def add_arguments(self, parser):
        parser.add_argument('user_id', type=int, nargs='?', default=None, help='Optional user ID to refresh')

    def handle(self, *args, **options):
        user_id = options.get('user_id')

        if user_id:
            users = User.objects.filter(id=user_id)
            if not users.exists():
                self.stdout.write(self.style.ERROR(f"User with ID {user_id} does not exist"))
                return
        else:
            users = User.objects.filter(is_active=True)

        for user in users:
            unread_count = refresh_unread_count(user.id)
            self.stdout.write(f"{user.email}: {unread_count} unread")

        self.stdout.write(self.style.SUCCESS("Notification cache refreshed"))
