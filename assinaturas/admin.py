# assinaturas/admin.py
from django.contrib import admin, messages

from .models import (
    AssinaturaEmpresa,
    CupomAdmin,
    Funcionalidade,
    Plano,
    PlanoFuncionalidade,
    PlanoLimite,
    StatusAssinatura,
    TentativaPagamento,
    UsoCupom,
)


@admin.register(Funcionalidade)
class FuncionalidadeAdmin(admin.ModelAdmin):
    list_display = ("chave", "nome")
    search_fields = ("chave", "nome")


class PlanoFuncionalidadeInline(admin.TabularInline):
    model = PlanoFuncionalidade
    extra = 0


class PlanoLimiteInline(admin.TabularInline):
    model = PlanoLimite
    extra = 0


@admin.register(Plano)
class PlanoAdmin(admin.ModelAdmin):
    list_display = ("nome", "preco", "duracao_meses", "ativo")
    list_filter = ("ativo",)
    search_fields = ("nome",)
    inlines = [PlanoFuncionalidadeInline, PlanoLimiteInline]


@admin.register(AssinaturaEmpresa)
class AssinaturaEmpresaAdmin(admin.ModelAdmin):
    list_display = ("empresa", "plano", "status", "data_inicio", "data_fim")
    list_filter = ("status", "plano")
    search_fields = ("empresa__nome",)
    actions = ("cancelar",)

    def cancelar(self, request, queryset):
        n = queryset.update(status=StatusAssinatura.CANCELED)
        self.message_user(request, f"{n} assinatura(s) cancelada(s).", level=messages.SUCCESS)
    cancelar.short_description = "Cancelar selecionadas"


@admin.register(CupomAdmin)
class CupomAdminAdmin(admin.ModelAdmin):
    list_display = ("codigo", "tipo_desconto", "valor_desconto", "status", "plano", "usos_atuais", "max_usos", "validade")
    list_filter = ("status", "tipo_desconto", "periodo_cobranca")
    search_fields = ("codigo",)
    readonly_fields = ("usos_atuais",)


@admin.register(UsoCupom)
class UsoCupomAdmin(admin.ModelAdmin):
    list_display = ("cupom", "empresa", "assinatura", "created_at")
    search_fields = ("cupom__codigo", "empresa__nome")


@admin.register(TentativaPagamento)
class TentativaPagamentoAdmin(admin.ModelAdmin):
    list_display = ("empresa", "plano", "valor", "status", "payment_id", "created_at")
    list_filter = ("status",)
    search_fields = ("empresa__nome", "payment_id", "preference_id", "referencia_externa")
    readonly_fields = ("detalhes",)
