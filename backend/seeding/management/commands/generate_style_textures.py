"""
Management command to generate and link textures for styles from their material guidance
"""
from django.core.management.base import BaseCommand, CommandError
from django.db.models import Q

from backend.catalog.models import Style
from backend.core.models import Organization
from backend.core.utils import create_audit_log
from backend.seeding.pacing import FixedIntervalPacer
from backend.seeding.pipeline import StyleTextureGenerator


class Command(BaseCommand):
    help = "Generates textures for styles from their material guidance and links them to the styles"

    def add_arguments(self, parser):
        parser.add_argument(
            '--style',
            action='append',
            dest='styles',
            default=[],
            help='Slug of a style to process (repeatable). Defaults to every style with material guidance',
        )
        parser.add_argument(
            '--max-textures',
            type=int,
            default=8,
            help='Maximum textures per style (default: 8)',
        )
        parser.add_argument(
            '--no-images',
            action='store_true',
            help='Do not request texture images from the image-generation service',
        )
        parser.add_argument(
            '--delay',
            type=float,
            default=3.0,
            help='Seconds to wait between styles (default: 3)',
        )
        parser.add_argument(
            '--organization',
            help='Organization slug; textures are created for and matched within this organization',
        )
        parser.add_argument(
            '--style-context',
            help='Context passed to the AI matcher instead of the style name',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Also process styles that already have textures linked',
        )

    def get_organization(self, slug):
        if not slug:
            return None
        try:
            return Organization.objects.get(slug=slug)
        except Organization.DoesNotExist:
            raise CommandError(f"Organization '{slug}' does not exist")

    def handle(self, *args, **options):
        if options['max_textures'] < 1:
            raise CommandError("--max-textures must be a positive number")

        organization = self.get_organization(options.get('organization'))
        force = options['force']

        styles = Style.objects.exclude(material_guidance='').order_by('id')
        if options['styles']:
            styles = styles.filter(slug__in=options['styles'])
        if organization:
            styles = styles.filter(Q(organization__isnull=True) | Q(organization=organization))

        self.stdout.write(self.style.SUCCESS("================================================================================"))
        self.stdout.write(self.style.SUCCESS("GENERATING STYLE TEXTURES"))
        self.stdout.write(self.style.SUCCESS("================================================================================"))
        self.stdout.write(f"Styles: {styles.count()}")
        self.stdout.write(f"Max textures per style: {options['max_textures']}")
        self.stdout.write(f"Generate images: {not options['no_images']}")

        generator = StyleTextureGenerator.from_settings()
        style_pacer = FixedIntervalPacer(options['delay'])

        processed = 0
        skipped = 0
        failed = 0
        total_textures = 0
        total_created = 0

        for style in styles:
            if not force and style.texture_links.exists():
                skipped += 1
                self.stdout.write(self.style.WARNING(f"  ⊘ Skipped (already has textures): {style.slug}"))
                continue

            style_pacer.wait()
            self.stdout.write(f"\n🧱 {style.name_en} ({style.price_level})")
            try:
                result = generator.process_style(
                    style.id,
                    style.material_guidance,
                    style.price_level,
                    organization_id=organization.id if organization else None,
                    max_textures=options['max_textures'],
                    generate_images=not options['no_images'],
                    style_context=options.get('style_context'),
                )
            except Exception as e:
                failed += 1
                self.stdout.write(self.style.ERROR(f"  ✗ Failed: {style.slug}: {e}"))
                continue

            processed += 1
            create_audit_log(
                action='style_textures_generate',
                model_name='Style',
                object_id=style.id,
                object_name=style.name_en,
                object_reference=style.slug,
                changes={
                    'texture_ids': result.texture_ids,
                    'matched': result.stats.matched,
                    'created': result.stats.created,
                    'images': result.stats.images,
                    'errors': result.stats.errors,
                },
            )
            total_textures += len(result.texture_ids)
            total_created += result.stats.created
            self.stdout.write(self.style.SUCCESS(
                f"  ✓ {len(result.texture_ids)} textures linked "
                f"(matched {result.stats.matched}, created {result.stats.created}, images {result.stats.images})"
            ))
            for error in result.errors:
                self.stdout.write(self.style.WARNING(f"    ⚠ {error.name}: {error.message}"))

        self.stdout.write(self.style.SUCCESS("\n================================================================================"))
        self.stdout.write(self.style.SUCCESS("SUMMARY"))
        self.stdout.write(self.style.SUCCESS("================================================================================"))
        self.stdout.write(f"Styles Processed: {processed}")
        self.stdout.write(f"Styles Skipped (already have textures): {skipped}")
        self.stdout.write(f"Styles Failed: {failed}")
        self.stdout.write(f"Textures Linked: {total_textures}")
        self.stdout.write(f"Textures Created: {total_created}")
        self.stdout.write(self.style.SUCCESS("================================================================================"))
