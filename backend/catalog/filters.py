import django_filters
from django.db.models import Q
from .models import Texture


class TextureFilter(django_filters.FilterSet):
    """Filters for the texture list endpoint"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='categories__slug', lookup_expr='exact')
    finish = django_filters.CharFilter(field_name='finish', lookup_expr='iexact')
    organization = django_filters.NumberFilter(field_name='organization_id', lookup_expr='exact')
    is_abstract = django_filters.BooleanFilter(field_name='is_abstract')

    class Meta:
        model = Texture
        fields = ['search', 'category', 'finish', 'organization', 'is_abstract']

    def filter_search(self, queryset, name, value):
        """Search both language names and the tag list"""
        if not value:
            return queryset
        value = value.strip()
        return queryset.filter(
            Q(name_en__icontains=value) |
            Q(name_he__icontains=value) |
            Q(tags__icontains=value)
        ).distinct()
