from django.conf import settings
from django.db import models


class Organization(models.Model):
    """Tenant owning styles and textures. Records without an organization are global."""
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'organizations'
        ordering = ['name']


class AuditLog(models.Model):
    """Audit log for catalog mutations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('texture_create', 'Texture Created'),
        ('texture_link', 'Texture Linked to Style'),
        ('texture_unlink', 'Texture Unlinked from Style'),
        ('style_textures_generate', 'Style Textures Generated'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., texture name, style name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., the style a texture was linked to)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_8a1f2e_idx'),
            models.Index(fields=['action'], name='audit_logs_action_3c9d41_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_7b2e90_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__5d4c13_idx'),
        ]
