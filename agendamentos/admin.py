# agendamentos/admin.py
from django.contrib import admin

from .models import Agendamento, AgendamentoServico, ExcecaoAgenda, JornadaTrabalho


class AgendamentoServicoInline(admin.TabularInline):
    model = AgendamentoServico
    extra = 0


@admin.register(Agendamento)
class AgendamentoAdmin(admin.ModelAdmin):
    list_display = ("data", "hora", "empresa", "colaborador", "cliente", "status", "valor_total")
    list_filter = ("status", "empresa", "data")
    search_fields = ("cliente__nome", "cliente_apelido", "colaborador__nome", "observacoes")
    ordering = ("-data", "-hora")
    date_hierarchy = "data"
    inlines = [AgendamentoServicoInline]


@admin.register(JornadaTrabalho)
class JornadaTrabalhoAdmin(admin.ModelAdmin):
    list_display = ("colaborador", "dia_semana", "inicio", "fim", "ativo")
    list_filter = ("dia_semana", "ativo")
    search_fields = ("colaborador__nome",)


@admin.register(ExcecaoAgenda)
class ExcecaoAgendaAdmin(admin.ModelAdmin):
    list_display = ("colaborador", "data", "dia_inteiro", "inicio", "fim", "motivo")
    list_filter = ("dia_inteiro",)
    search_fields = ("colaborador__nome", "motivo")
    ordering = ("-data",)
