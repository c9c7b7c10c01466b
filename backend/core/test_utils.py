"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.core.models import Organization
from backend.catalog.models import MaterialCategory, Texture, TextureMaterialCategory, Style, StyleTexture, PriceLevel
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )
        return user

    @staticmethod
    def create_organization(name=None, slug=None):
        """Create a test organization"""
        if not name:
            name = f'Org_{TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'org-{TestDataFactory.random_string(6).lower()}'
        return Organization.objects.create(name=name, slug=slug)

    @staticmethod
    def create_material_category(slug=None, name_en=None, name_he=None):
        """Create a test material category"""
        if not slug:
            slug = f'category-{TestDataFactory.random_string(6).lower()}'
        return MaterialCategory.objects.create(
            slug=slug,
            name_en=name_en or slug.replace('-', ' ').title(),
            name_he=name_he or f'קטגוריה {slug}',
        )

    @staticmethod
    def create_texture(name_en=None, name_he=None, finish='natural', category=None, organization=None, usage=0):
        """Create a test texture, optionally filed under a category"""
        if not name_en:
            name_en = f'Texture_{TestDataFactory.random_string(6)}'
        texture = Texture.objects.create(
            name_en=name_en,
            name_he=name_he or f'טקסטורה {name_en}',
            finish=finish,
            organization=organization,
            usage=usage,
        )
        if category:
            TextureMaterialCategory.objects.create(texture=texture, material_category=category)
        return texture

    @staticmethod
    def create_style(name_en=None, slug=None, price_level=PriceLevel.REGULAR, material_guidance='', organization=None):
        """Create a test style"""
        if not name_en:
            name_en = f'Style_{TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'style-{TestDataFactory.random_string(8).lower()}'
        return Style.objects.create(
            name_en=name_en,
            name_he=f'סגנון {name_en}',
            slug=slug,
            price_level=price_level,
            material_guidance=material_guidance,
            organization=organization,
        )

    @staticmethod
    def create_style_texture(style, texture, notes=''):
        """Create a raw style-texture link without touching the usage counter"""
        return StyleTexture.objects.create(style=style, texture=texture, notes=notes)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
