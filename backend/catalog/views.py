from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from .models import Texture, Style
from .filters import TextureFilter
from .serializers import TextureSerializer, StyleTextureSerializer, StyleTextureLinkSerializer
from .utils import link_style_to_texture, unlink_texture_from_style, get_style_textures, group_textures_by_category


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def texture_list(request):
    """List textures with optional filters (search, category, finish, organization, is_abstract)"""
    queryset = Texture.objects.prefetch_related('categories').order_by('-usage', '-created_at')
    texture_filter = TextureFilter(request.query_params, queryset=queryset)
    if not texture_filter.is_valid():
        return Response(texture_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    serializer = TextureSerializer(texture_filter.qs, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def texture_detail(request, pk):
    """Retrieve a texture"""
    texture = get_object_or_404(Texture.objects.prefetch_related('categories'), pk=pk)
    serializer = TextureSerializer(texture)
    return Response(serializer.data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def style_textures(request, pk):
    """List the textures linked to a style, or link another one"""
    style = get_object_or_404(Style, pk=pk)

    if request.method == 'GET':
        links = list(get_style_textures(style.id))
        grouped = group_textures_by_category(links)
        return Response({
            'textures': StyleTextureSerializer(links, many=True).data,
            'grouped_by_category': {
                category: StyleTextureSerializer(items, many=True).data
                for category, items in grouped.items()
            },
            'counts': {
                'total': len(links),
                'by_category': [
                    {'category': category, 'count': len(items)}
                    for category, items in grouped.items()
                ],
            },
        })

    serializer = StyleTextureLinkSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    created = link_style_to_texture(
        style.id,
        serializer.validated_data['texture_id'],
        notes=serializer.validated_data.get('notes', ''),
        request=request,
    )
    return Response(
        {'linked': True, 'created': created},
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def style_texture_unlink(request, pk, texture_pk):
    """Unlink a texture from a style"""
    style = get_object_or_404(Style, pk=pk)
    removed = unlink_texture_from_style(style.id, texture_pk, request=request)
    if not removed:
        return Response({'error': 'Texture is not linked to this style'}, status=status.HTTP_404_NOT_FOUND)
    return Response(status=status.HTTP_204_NO_CONTENT)
