from django.urls import path
from .views import texture_list, texture_detail, style_textures, style_texture_unlink

urlpatterns = [
    # Texture endpoints
    path('textures/', texture_list, name='texture-list'),
    path('textures/<int:pk>/', texture_detail, name='texture-detail'),

    # Style texture links
    path('styles/<int:pk>/textures/', style_textures, name='style-textures'),
    path('styles/<int:pk>/textures/<int:texture_pk>/', style_texture_unlink, name='style-texture-unlink'),
]
