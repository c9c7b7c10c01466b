from rest_framework import serializers
from .models import MaterialCategory, Texture, StyleTexture


class MaterialCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = MaterialCategory
        fields = ['id', 'name_en', 'name_he', 'slug', 'description', 'is_active', 'created_at', 'updated_at']


class TextureSerializer(serializers.ModelSerializer):
    name = serializers.SerializerMethodField()
    categories = MaterialCategorySerializer(many=True, read_only=True)

    class Meta:
        model = Texture
        fields = ['id', 'organization', 'name', 'name_en', 'name_he', 'finish', 'sheen', 'base_color',
                  'is_abstract', 'generation_status', 'ai_description', 'image_url', 'tags', 'usage',
                  'categories', 'created_at', 'updated_at']
        read_only_fields = ['usage', 'created_at', 'updated_at']

    def get_name(self, obj):
        return obj.name


class StyleTextureSerializer(serializers.ModelSerializer):
    """A linked texture with the link's notes"""
    texture = TextureSerializer(read_only=True)

    class Meta:
        model = StyleTexture
        fields = ['id', 'texture', 'notes', 'created_at']


class StyleTextureLinkSerializer(serializers.Serializer):
    texture_id = serializers.IntegerField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_texture_id(self, value):
        if not Texture.objects.filter(pk=value).exists():
            raise serializers.ValidationError('Texture not found.')
        return value
