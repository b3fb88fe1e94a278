from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from clinic.services import site_cache
from clinic.services.public_api import PublicApi


class Command(BaseCommand):
    help = "Warm the public site's cached lists (departments, doctors, gallery, plans)."

    def handle(self, *args, **options):
        now = timezone.now()
        written, failed = site_cache.warm(PublicApi())
        for key in failed:
            self.stderr.write(self.style.WARNING(f'Could not refresh {key}'))
        if failed and not written:
            raise CommandError('Failed to warm public cache: every upstream list failed')
        summary = f'Refreshed {len(written)} keys at {now}'
        if failed:
            summary += f' ({len(failed)} failed)'
        self.stdout.write(self.style.SUCCESS(summary))
