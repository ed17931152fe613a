from django.core.management.base import BaseCommand

from account.models import User


class Command(BaseCommand):
    help = 'Creates the default admin and cashier accounts if they do not exist'

    DEFAULT_USERS = [
        ("admin", "admin123", User.Role.ADMIN),
        ("cashier", "cashier123", User.Role.CASHIER),
    ]

    def handle(self, *args, **kwargs):
        created_count = 0
        for username, password, role in self.DEFAULT_USERS:
            if User.objects.filter(username=username).exists():
                self.stdout.write(f'- User already exists: {username}')
                continue
            User.objects.create_user(
                username=username,
                password=password,
                role=role,
                is_staff=role == User.Role.ADMIN,
            )
            created_count += 1
            self.stdout.write(self.style.SUCCESS(f'✓ Created {role.lower()} user: {username}'))

        self.stdout.write(self.style.SUCCESS(f'Created {created_count} new users'))
