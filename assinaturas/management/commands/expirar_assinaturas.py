# assinaturas/management/commands/expirar_assinaturas.py
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.dateparse import parse_date

from assinaturas.services import expirar_assinaturas


class Command(BaseCommand):
    help = "Marca como EXPIRED as assinaturas ativas cujo fim já passou."

    def add_arguments(self, parser):
        parser.add_argument("--data", type=str, default=None,
                            help="Data de referência YYYY-MM-DD (default: hoje).")

    @transaction.atomic
    def handle(self, *args, **opts):
        hoje = parse_date(opts["data"]) if opts.get("data") else None
        total = expirar_assinaturas(hoje)
        self.stdout.write(self.style.SUCCESS(f"Assinaturas expiradas: {total}"))
