"""
Management command to add the material categories textures are filed under
"""
from django.core.management.base import BaseCommand
from backend.catalog.models import MaterialCategory


MATERIAL_CATEGORIES = [
    {
        'slug': 'wall-finishes',
        'name_en': 'Wall Finishes',
        'name_he': 'גימורי קירות',
        'description': 'Paint, plaster, wallpaper and other wall surface finishes',
    },
    {
        'slug': 'wood-finishes',
        'name_en': 'Wood Finishes',
        'name_he': 'גימורי עץ',
        'description': 'Solid wood, veneers and wood surface treatments',
    },
    {
        'slug': 'metal-finishes',
        'name_en': 'Metal Finishes',
        'name_he': 'גימורי מתכת',
        'description': 'Steel, brass, copper, bronze and other metal finishes',
    },
    {
        'slug': 'fabric-textures',
        'name_en': 'Fabric Textures',
        'name_he': 'טקסטורות בד',
        'description': 'Upholstery and textile textures, including leather',
    },
    {
        'slug': 'stone-finishes',
        'name_en': 'Stone Finishes',
        'name_he': 'גימורי אבן',
        'description': 'Marble, granite, limestone, concrete and terrazzo',
    },
    {
        'slug': 'ceramic-tiles',
        'name_en': 'Ceramic Tiles',
        'name_he': 'אריחי קרמיקה',
        'description': 'Ceramic and porcelain tiles',
    },
]


class Command(BaseCommand):
    help = "Adds the predefined material categories used by texture generation"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete all existing material categories before adding them',
        )

    def handle(self, *args, **options):
        clear = options['clear']

        self.stdout.write(self.style.SUCCESS("================================================================================"))
        self.stdout.write(self.style.SUCCESS("ADDING MATERIAL CATEGORIES"))
        self.stdout.write(self.style.SUCCESS("================================================================================"))

        if clear:
            self.stdout.write(self.style.WARNING("Clearing all existing material categories..."))
            MaterialCategory.objects.all().delete()
            self.stdout.write(self.style.SUCCESS("All material categories cleared."))

        created_count = 0
        skipped_count = 0

        for data in MATERIAL_CATEGORIES:
            category, created = MaterialCategory.objects.get_or_create(
                slug=data['slug'],
                defaults={
                    'name_en': data['name_en'],
                    'name_he': data['name_he'],
                    'description': data['description'],
                    'is_active': True,
                }
            )

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"  ✓ Created: {category.name_en} / {category.name_he}"))
            else:
                skipped_count += 1
                self.stdout.write(self.style.WARNING(f"  ⊘ Skipped (already exists): {category.slug}"))

        self.stdout.write(self.style.SUCCESS("\n================================================================================"))
        self.stdout.write(self.style.SUCCESS("SUMMARY"))
        self.stdout.write(self.style.SUCCESS("================================================================================"))
        self.stdout.write(f"Categories Created: {created_count}")
        self.stdout.write(f"Categories Skipped (already exist): {skipped_count}")
        self.stdout.write(f"Total Material Categories in Database: {MaterialCategory.objects.count()}")
        self.stdout.write(self.style.SUCCESS("================================================================================"))
