"""
Growcycle API URLs.

Include this in your project's urlpatterns:

    path('api/growcycle/', include('growcycle.api.urls')),
"""

from rest_framework.routers import DefaultRouter

from .views import FarmViewSet, RecipeViewSet, SeedingRequestViewSet, TrayViewSet

router = DefaultRouter()
router.register("farms", FarmViewSet)
router.register("recipes", RecipeViewSet)
router.register("trays", TrayViewSet)
router.register("seeding-requests", SeedingRequestViewSet)

urlpatterns = router.urls
