# assinaturas/management/commands/semear_planos.py
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from assinaturas.models import Funcionalidade, Plano, PlanoFuncionalidade, PlanoLimite, TipoLimite

FUNCIONALIDADES = [
    ("agenda", "Agenda online"),
    ("financeiro", "Caixa e financeiro"),
    ("relatorios", "Relatórios"),
    ("estoque", "Controle de estoque"),
    ("whatsapp", "Mensagens de WhatsApp"),
]

# nome, preço, meses, funcionalidades, {limite: valor}
PLANOS = [
    ("Básico", Decimal("49.90"), 1, ["agenda", "financeiro"], {TipoLimite.COLABORADORES: 2, TipoLimite.SERVICOS: 10}),
    ("Profissional", Decimal("99.90"), 1, ["agenda", "financeiro", "relatorios", "estoque"],
     {TipoLimite.COLABORADORES: 10, TipoLimite.SERVICOS: 50}),
    ("Premium", Decimal("999.00"), 12, ["agenda", "financeiro", "relatorios", "estoque", "whatsapp"],
     {TipoLimite.COLABORADORES: 0, TipoLimite.SERVICOS: 0}),
]


class Command(BaseCommand):
    help = "Cria/atualiza funcionalidades e planos padrão (idempotente)."

    @transaction.atomic
    def handle(self, *args, **opts):
        funcs = {}
        for chave, nome in FUNCIONALIDADES:
            funcs[chave], _ = Funcionalidade.objects.update_or_create(chave=chave, defaults={"nome": nome})

        for nome, preco, meses, chaves, limites in PLANOS:
            plano, created = Plano.objects.update_or_create(
                nome=nome,
                defaults={"preco": preco, "duracao_meses": meses, "ativo": True},
            )
            for chave in chaves:
                PlanoFuncionalidade.objects.get_or_create(plano=plano, funcionalidade=funcs[chave])
            for tipo, valor in limites.items():
                PlanoLimite.objects.update_or_create(plano=plano, tipo=tipo, defaults={"valor": valor})
            self.stdout.write(f"{'Criado' if created else 'Atualizado'}: {plano.nome}")

        self.stdout.write(self.style.SUCCESS(f"Planos prontos: {len(PLANOS)}"))
