"""
Test suite for the core module
Tests: audit logging helper and JWT authentication
"""
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.models import AuditLog
from backend.core.utils import create_audit_log


class AuditLogUtilTests(TestCase):
    """Test create_audit_log"""

    def test_creates_entry_without_request(self):
        """Test pipeline runs can log without a request"""
        entry = create_audit_log(
            action='texture_create',
            model_name='Texture',
            object_id=12,
            object_name='Oak',
            changes={'finish': 'brushed'},
        )

        self.assertIsNotNone(entry)
        self.assertIsNone(entry.user)
        self.assertEqual(entry.object_id, '12')
        self.assertEqual(entry.changes, {'finish': 'brushed'})

    def test_missing_fields_skipped(self):
        """Test incomplete entries are skipped, not raised"""
        self.assertIsNone(create_audit_log(action='texture_create', model_name='Texture'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_explicit_user(self):
        """Test a user override is recorded"""
        user = TestDataFactory.create_user()

        entry = create_audit_log(action='texture_link', model_name='StyleTexture', object_id=1, user=user)

        self.assertEqual(entry.user, user)


class AuthAPITests(TestCase):
    """Test JWT authentication"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='designer', password='testpass123', is_staff=True)
        self.client = AuthenticatedAPIClient()

    def test_login(self):
        """Test JWT login returns a token pair"""
        response = self.client.post('/api/v1/auth/login/', {'username': 'designer', 'password': 'testpass123'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_refresh(self):
        """Test a refresh token yields a new access token"""
        response = self.client.post('/api/v1/auth/login/', {'username': 'designer', 'password': 'testpass123'}, format='json')

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': response.data['refresh']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_inactive_user_rejected(self):
        """Test a disabled account cannot log in"""
        self.user.is_active = False
        self.user.save()

        response = self.client.post('/api/v1/auth/login/', {'username': 'designer', 'password': 'testpass123'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
