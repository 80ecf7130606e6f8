# financeiro/admin.py
import csv

from django.contrib import admin
from django.http import HttpResponse
from django.utils import timezone

from .models import FechamentoCaixa, MovimentoCaixa, PagamentoComissao, Produto


@admin.register(MovimentoCaixa)
class MovimentoCaixaAdmin(admin.ModelAdmin):
    list_display = ("data_transacao", "empresa", "tipo", "forma_pagamento", "valor", "eh_comissao", "colaborador")
    list_filter = ("tipo", "forma_pagamento", "eh_comissao", "empresa")
    search_fields = ("observacoes", "colaborador__nome", "empresa__nome")
    date_hierarchy = "data_transacao"
    actions = ("exportar_csv",)

    def exportar_csv(self, request, queryset):
        response = HttpResponse(content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = 'attachment; filename="movimentos.csv"'
        writer = csv.writer(response, delimiter=";")
        writer.writerow(["data", "empresa", "tipo", "forma", "valor", "comissao", "observacoes"])
        for m in queryset.select_related("empresa").order_by("data_transacao"):
            writer.writerow([
                f"{timezone.localtime(m.data_transacao):%d/%m/%Y %H:%M}",
                m.empresa.nome,
                m.get_tipo_display(),
                m.get_forma_pagamento_display(),
                f"{m.valor:.2f}",
                1 if m.eh_comissao else 0,
                m.observacoes,
            ])
        return response
    exportar_csv.short_description = "Exportar CSV (selecionados)"


@admin.register(FechamentoCaixa)
class FechamentoCaixaAdmin(admin.ModelAdmin):
    list_display = ("empresa", "tipo", "data_inicio", "data_fim", "total_recebimentos", "total_despesas", "saldo")
    list_filter = ("tipo", "empresa")
    ordering = ("-data_inicio",)


@admin.register(PagamentoComissao)
class PagamentoComissaoAdmin(admin.ModelAdmin):
    list_display = ("colaborador", "empresa", "valor", "forma_pagamento", "pago_por", "created_at")
    list_filter = ("forma_pagamento", "empresa")
    search_fields = ("colaborador__nome",)


@admin.register(Produto)
class ProdutoAdmin(admin.ModelAdmin):
    list_display = ("nome", "empresa", "preco", "estoque", "estoque_minimo", "ativo")
    list_filter = ("ativo", "empresa")
    search_fields = ("nome",)
    list_editable = ("preco", "estoque", "ativo")
