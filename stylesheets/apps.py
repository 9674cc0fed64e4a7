from django.apps import AppConfig


class StylesheetsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'stylesheets'
    verbose_name = 'Stylesheet optimizer'
