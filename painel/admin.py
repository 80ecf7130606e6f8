# painel/admin.py
from django.contrib import admin

from .models import ContatoSolicitacao


@admin.register(ContatoSolicitacao)
class ContatoSolicitacaoAdmin(admin.ModelAdmin):
    list_display = ("created_at", "nome", "email", "empresa_nome", "status")
    list_filter = ("status",)
    search_fields = ("nome", "email", "empresa_nome", "mensagem")
    date_hierarchy = "created_at"
    actions = ("marcar_respondida", "arquivar")

    def marcar_respondida(self, request, queryset):
        n = queryset.update(status=ContatoSolicitacao.Status.RESPONDIDA)
        self.message_user(request, f"{n} solicitação(ões) marcadas como respondidas.")
    marcar_respondida.short_description = "Marcar como respondida"

    def arquivar(self, request, queryset):
        n = queryset.update(status=ContatoSolicitacao.Status.ARQUIVADA)
        self.message_user(request, f"{n} solicitação(ões) arquivadas.")
    arquivar.short_description = "Arquivar"
