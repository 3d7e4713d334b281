"""
URL configuration for jobtracker project.
"""
from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/timing/', include('timing.urls')),
]
