from django.apps import AppConfig


class ArticlesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.articles'
    verbose_name = 'Articles'

    def ready(self):
        """Build the state change notifier from settings."""
        from apps.articles.wiring import get_notifier
        get_notifier()
