"""
Article workflow API URLs.

Article routes are mounted at /api/articles/; the approval endpoint is
exported separately and mounted at /api/approvals/ in config/urls.py.
"""

from django.urls import path, include
from config.routers import SafeDefaultRouter
from .views import ArticleViewSet, ApprovalView

app_name = 'articles'

router = SafeDefaultRouter()
router.register(r'', ArticleViewSet, basename='article')

urlpatterns = [
    path('', include(router.urls)),
]

# Vote submission - mounted at /api/approvals/ in main urls.py
approvals_urlpatterns = [
    path('', ApprovalView.as_view(), name='approval-submit'),
]
