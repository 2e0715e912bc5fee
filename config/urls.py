"""
URL configuration for the Newsdesk project.
"""

from django.contrib import admin
from django.urls import path, include

from apps.core.urls import auth_urlpatterns
from apps.articles.urls import approvals_urlpatterns

urlpatterns = [
    path('admin/', admin.site.urls),
    # Auth endpoints (tokens are issued by the identity service)
    path('api/auth/', include((auth_urlpatterns, 'auth'))),
    # Articles API
    path('api/articles/', include('apps.articles.urls')),
    # Reviewer votes
    path('api/approvals/', include((approvals_urlpatterns, 'approvals'))),
    # Observability endpoints
    path('api/', include('apps.core.urls')),
]

# Customize admin site
admin.site.site_header = "Newsdesk Administration"
admin.site.site_title = "Newsdesk Admin Portal"
admin.site.index_title = "Welcome to Newsdesk Administration"
