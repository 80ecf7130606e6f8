# empresas/admin.py
from django.contrib import admin, messages

from .models import (
    Colaborador,
    ColaboradorServico,
    Contrato,
    Empresa,
    Membership,
    PerfilUsuario,
    Segmento,
)


@admin.register(Segmento)
class SegmentoAdmin(admin.ModelAdmin):
    list_display = ("nome", "ativo")
    list_filter = ("ativo",)
    search_fields = ("nome",)


@admin.register(Contrato)
class ContratoAdmin(admin.ModelAdmin):
    list_display = ("numero", "nome", "ativo", "created_at")
    list_filter = ("ativo",)
    search_fields = ("numero", "nome")


@admin.register(Empresa)
class EmpresaAdmin(admin.ModelAdmin):
    list_display = ("nome", "slug", "cnpj", "proprietario", "ativo", "aprovada", "created_at")
    list_filter = ("ativo", "aprovada", "segmento")
    search_fields = ("nome", "slug", "cnpj", "proprietario__email")
    readonly_fields = ("created_at",)
    actions = ("aprovar", "ativar", "desativar")

    def aprovar(self, request, queryset):
        n = queryset.update(aprovada=True)
        self.message_user(request, f"{n} empresa(s) aprovada(s).", level=messages.SUCCESS)
    aprovar.short_description = "Aprovar selecionadas"

    def ativar(self, request, queryset):
        n = queryset.update(ativo=True)
        self.message_user(request, f"{n} empresa(s) ativada(s).", level=messages.SUCCESS)
    ativar.short_description = "Ativar selecionadas"

    def desativar(self, request, queryset):
        n = queryset.update(ativo=False)
        self.message_user(request, f"{n} empresa(s) desativada(s).", level=messages.SUCCESS)
    desativar.short_description = "Desativar selecionadas"


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("user", "empresa", "role", "is_primary", "is_active")
    list_filter = ("role", "is_active", "is_primary")
    search_fields = ("user__username", "user__email", "empresa__nome")
    ordering = ("empresa", "user__username")
    autocomplete_fields = ("user", "empresa")


@admin.register(PerfilUsuario)
class PerfilUsuarioAdmin(admin.ModelAdmin):
    list_display = ("user", "tipo", "nome", "senha_temporaria")
    list_filter = ("tipo", "senha_temporaria")
    search_fields = ("user__email", "nome")


class ColaboradorServicoInline(admin.TabularInline):
    model = ColaboradorServico
    extra = 0
    autocomplete_fields = ("servico",)


@admin.register(Colaborador)
class ColaboradorAdmin(admin.ModelAdmin):
    list_display = ("nome_completo", "empresa", "email", "telefone", "ativo")
    list_filter = ("ativo", "empresa")
    search_fields = ("nome", "sobrenome", "email", "empresa__nome")
    inlines = [ColaboradorServicoInline]
