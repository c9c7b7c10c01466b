from django.contrib import admin
from django.utils.html import format_html
from .models import MaterialCategory, Texture, TextureMaterialCategory, Style, StyleTexture


@admin.register(MaterialCategory)
class MaterialCategoryAdmin(admin.ModelAdmin):
    list_display = ['name_en', 'name_he', 'slug', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name_en', 'name_he', 'slug']
    prepopulated_fields = {'slug': ('name_en',)}
    ordering = ['name_en']


class TextureMaterialCategoryInline(admin.TabularInline):
    model = TextureMaterialCategory
    extra = 0


@admin.register(Texture)
class TextureAdmin(admin.ModelAdmin):
    list_display = ['name_en', 'name_he', 'finish', 'organization', 'is_abstract', 'generation_status', 'usage', 'image_preview', 'created_at']
    list_filter = ['is_abstract', 'generation_status', 'finish', 'organization', 'created_at']
    search_fields = ['name_en', 'name_he', 'ai_description']
    ordering = ['-usage', 'name_en']
    readonly_fields = ['usage', 'image_preview', 'created_at', 'updated_at']
    inlines = [TextureMaterialCategoryInline]

    def image_preview(self, obj):
        if not obj.image_url:
            return '-'
        return format_html('<img src="{}" style="max-height: 60px;" />', obj.image_url)
    image_preview.short_description = 'Image'


class StyleTextureInline(admin.TabularInline):
    model = StyleTexture
    extra = 0
    readonly_fields = ['created_at']


@admin.register(Style)
class StyleAdmin(admin.ModelAdmin):
    list_display = ['name_en', 'name_he', 'slug', 'price_level', 'organization', 'created_at']
    list_filter = ['price_level', 'organization', 'created_at']
    search_fields = ['name_en', 'name_he', 'slug', 'material_guidance']
    prepopulated_fields = {'slug': ('name_en',)}
    ordering = ['name_en']
    inlines = [StyleTextureInline]
