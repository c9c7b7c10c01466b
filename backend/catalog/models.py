from django.core.exceptions import ValidationError
from django.db import models


class PriceLevel(models.TextChoices):
    REGULAR = 'REGULAR', 'Regular'
    LUXURY = 'LUXURY', 'Luxury'


class MaterialCategory(models.Model):
    """Material categories textures are filed under (wood finishes, stone finishes, ...)"""
    name_en = models.CharField(max_length=200)
    name_he = models.CharField(max_length=200)
    slug = models.SlugField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name_en

    class Meta:
        db_table = 'material_categories'
        verbose_name_plural = 'material categories'
        ordering = ['name_en']


class Texture(models.Model):
    """Texture catalog entity, curated or synthesized by the seeding pipeline"""
    GENERATION_STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('GENERATING', 'Generating'),
        ('COMPLETED', 'Completed'),
        ('FAILED', 'Failed'),
    ]

    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, null=True, blank=True, related_name='textures')
    name_en = models.CharField(max_length=200, db_index=True)
    name_he = models.CharField(max_length=200, db_index=True)
    finish = models.CharField(max_length=50, default='natural')
    sheen = models.CharField(max_length=50, blank=True)
    base_color = models.CharField(max_length=50, blank=True)
    # True when the texture was synthesized by the pipeline rather than curated
    is_abstract = models.BooleanField(default=False)
    generation_status = models.CharField(max_length=20, choices=GENERATION_STATUS_CHOICES, default='COMPLETED', db_index=True)
    ai_description = models.TextField(blank=True)
    image_url = models.URLField(max_length=1000, blank=True)
    tags = models.JSONField(default=list, blank=True)
    usage = models.PositiveIntegerField(default=0)
    categories = models.ManyToManyField(MaterialCategory, through='TextureMaterialCategory', related_name='textures')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name_en} ({self.finish})"

    def clean(self):
        """Both names are required; a partially empty bilingual name is never stored"""
        errors = {}
        if not (self.name_en or '').strip():
            errors['name_en'] = 'English name is required.'
        if not (self.name_he or '').strip():
            errors['name_he'] = 'Hebrew name is required.'
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        self.full_clean(exclude=['organization'], validate_unique=False)
        super().save(*args, **kwargs)

    @property
    def name(self):
        return {'en': self.name_en, 'he': self.name_he}

    class Meta:
        db_table = 'textures'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-usage', '-created_at'], name='textures_usage_created_idx'),
        ]


class TextureMaterialCategory(models.Model):
    """Join between a texture and a material category"""
    texture = models.ForeignKey(Texture, on_delete=models.CASCADE, related_name='category_links')
    material_category = models.ForeignKey(MaterialCategory, on_delete=models.CASCADE, related_name='texture_links')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.texture.name_en} - {self.material_category.slug}"

    class Meta:
        db_table = 'texture_material_categories'
        unique_together = [['texture', 'material_category']]


class Style(models.Model):
    """Interior design style carrying the material guidance textures are generated from"""
    organization = models.ForeignKey('core.Organization', on_delete=models.CASCADE, null=True, blank=True, related_name='styles')
    name_en = models.CharField(max_length=200)
    name_he = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    price_level = models.CharField(max_length=10, choices=PriceLevel.choices, default=PriceLevel.REGULAR)
    material_guidance = models.TextField(blank=True)
    textures = models.ManyToManyField(Texture, through='StyleTexture', related_name='styles')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name_en

    class Meta:
        db_table = 'styles'
        ordering = ['name_en']


class StyleTexture(models.Model):
    """Link between a style and a texture. At most one per pair."""
    style = models.ForeignKey(Style, on_delete=models.CASCADE, related_name='texture_links')
    texture = models.ForeignKey(Texture, on_delete=models.CASCADE, related_name='style_links')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.style.name_en} - {self.texture.name_en}"

    class Meta:
        db_table = 'style_textures'
        unique_together = [['style', 'texture']]
        ordering = ['created_at', 'id']
