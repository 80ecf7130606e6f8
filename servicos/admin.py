# servicos/admin.py
import csv

from django.contrib import admin, messages
from django.db.models import Count
from django.http import HttpResponse

from empresas.models import ColaboradorServico

from .models import Servico


class ExecutoresInline(admin.TabularInline):
    model = ColaboradorServico
    extra = 0
    fields = ("colaborador", "tipo_comissao", "valor_comissao", "ativo")
    autocomplete_fields = ("colaborador",)


@admin.register(Servico)
class ServicoAdmin(admin.ModelAdmin):
    list_display = ("nome", "empresa", "categoria", "preco", "duracao_min", "qtd_executores", "ativo")
    list_filter = ("ativo", "categoria", ("empresa", admin.RelatedOnlyFieldListFilter))
    search_fields = ("nome", "empresa__nome", "empresa__slug")
    list_select_related = ("empresa",)
    raw_id_fields = ("empresa",)
    readonly_fields = ("created_at", "updated_at")
    inlines = [ExecutoresInline]
    actions = ("desativar_sem_executor", "exportar_catalogo")

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(_executores=Count("colaboradores", distinct=True))

    @admin.display(description="Executores", ordering="_executores")
    def qtd_executores(self, obj):
        return obj._executores

    @admin.action(description="Desativar os que ninguém executa")
    def desativar_sem_executor(self, request, queryset):
        n = queryset.filter(_executores=0).update(ativo=False)
        self.message_user(request, f"{n} serviço(s) sem colaborador desativado(s).", level=messages.WARNING)

    @admin.action(description="Exportar catálogo (CSV)")
    def exportar_catalogo(self, request, queryset):
        response = HttpResponse(content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = 'attachment; filename="catalogo_servicos.csv"'
        out = csv.writer(response, delimiter=";")
        out.writerow(["empresa", "servico", "categoria", "minutos", "preco", "executores"])
        for s in queryset.order_by("empresa__nome", "nome"):
            out.writerow([s.empresa.slug, s.nome, s.get_categoria_display(), s.duracao_min, f"{s.preco:.2f}", s._executores])
        return response
