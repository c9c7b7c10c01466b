"""
Link and usage bookkeeping between styles and textures.

The usage counter on a texture counts the style links that reference it. Linking
is idempotent: a style that is reprocessed never increments the counter twice.
"""
import logging

from django.db import transaction
from django.db.models import F

from backend.catalog.models import StyleTexture, Texture
from backend.core.utils import create_audit_log

logger = logging.getLogger(__name__)


def link_style_to_texture(style_id, texture_id, notes='', request=None):
    """Create the (style, texture) link if missing and bump the texture usage.

    Returns True when a link was created, False when it already existed.
    """
    with transaction.atomic():
        if StyleTexture.objects.filter(style_id=style_id, texture_id=texture_id).exists():
            logger.debug(f"Style {style_id} already linked to texture {texture_id}")
            return False

        StyleTexture.objects.create(style_id=style_id, texture_id=texture_id, notes=notes)
        Texture.objects.filter(pk=texture_id).update(usage=F('usage') + 1)

    logger.info(f"Linked texture {texture_id} to style {style_id}")
    create_audit_log(
        request=request,
        action='texture_link',
        model_name='StyleTexture',
        object_id=texture_id,
        object_reference=str(style_id),
    )
    return True


def unlink_texture_from_style(style_id, texture_id, request=None):
    """Remove every link for the pair and decrement the texture usage once.

    Returns the number of link rows removed. The counter is only touched when a
    link was actually removed and never goes below zero.
    """
    with transaction.atomic():
        deleted, _ = StyleTexture.objects.filter(style_id=style_id, texture_id=texture_id).delete()
        if deleted:
            Texture.objects.filter(pk=texture_id, usage__gt=0).update(usage=F('usage') - 1)

    if deleted:
        logger.info(f"Unlinked texture {texture_id} from style {style_id}")
        create_audit_log(
            request=request,
            action='texture_unlink',
            model_name='StyleTexture',
            object_id=texture_id,
            object_reference=str(style_id),
        )
    else:
        logger.debug(f"No link between style {style_id} and texture {texture_id} to remove")
    return deleted


def get_style_textures(style_id):
    """Textures linked to a style, in link order, with their categories prefetched"""
    return (
        StyleTexture.objects
        .filter(style_id=style_id)
        .select_related('texture')
        .prefetch_related('texture__categories')
        .order_by('created_at', 'id')
    )


def group_textures_by_category(style_textures):
    """Group linked textures by the English name of their first category"""
    grouped = {}
    for link in style_textures:
        categories = list(link.texture.categories.all())
        category_name = categories[0].name_en if categories else 'Uncategorized'
        grouped.setdefault(category_name, []).append(link)
    return grouped
