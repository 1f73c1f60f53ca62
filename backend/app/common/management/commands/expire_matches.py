# app/common/management/commands/expire_matches.py
from django.core.management.base import BaseCommand

from app.matches.repository import expire_overdue_matches


class Command(BaseCommand):
    help = "Mark overdue pending matches as expired (housekeeping; reads expire lazily anyway)"

    def handle(self, *args, **options):
        count = expire_overdue_matches()
        self.stdout.write(self.style.SUCCESS(f"expired {count} match(es)"))
