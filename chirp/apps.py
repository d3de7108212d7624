from django.apps import AppConfig


class ChirpConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'chirp'
    verbose_name = 'Chirp'
