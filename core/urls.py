"""
URL configuration for the contact form backend.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.urls import path, include

from contact.views import HealthCheckView

urlpatterns = [
    path('api/health', HealthCheckView.as_view(), name='health'),
    path('api/contact/', include('contact.urls')),  # Public contact form (no auth)
]
