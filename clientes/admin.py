# clientes/admin.py
from django.contrib import admin

from .models import Cliente


@admin.register(Cliente)
class ClienteAdmin(admin.ModelAdmin):
    list_display = ("nome", "empresa", "telefone", "email", "status", "convidado", "created_at")
    list_filter = ("status", "convidado", "empresa")
    search_fields = ("nome", "telefone", "email")
    ordering = ("nome",)
