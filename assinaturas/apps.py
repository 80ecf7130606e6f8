from django.apps import AppConfig


class AssinaturasConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'assinaturas'
    verbose_name = "Assinaturas"
