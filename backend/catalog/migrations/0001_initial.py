# Generated manually for the texture catalog models

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MaterialCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name_en', models.CharField(max_length=200)),
                ('name_he', models.CharField(max_length=200)),
                ('slug', models.SlugField(max_length=100, unique=True)),
                ('description', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'material_categories',
                'verbose_name_plural': 'material categories',
                'ordering': ['name_en'],
            },
        ),
        migrations.CreateModel(
            name='Texture',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name_en', models.CharField(db_index=True, max_length=200)),
                ('name_he', models.CharField(db_index=True, max_length=200)),
                ('finish', models.CharField(default='natural', max_length=50)),
                ('sheen', models.CharField(blank=True, max_length=50)),
                ('base_color', models.CharField(blank=True, max_length=50)),
                ('is_abstract', models.BooleanField(default=False)),
                ('generation_status', models.CharField(choices=[('PENDING', 'Pending'), ('GENERATING', 'Generating'), ('COMPLETED', 'Completed'), ('FAILED', 'Failed')], db_index=True, default='COMPLETED', max_length=20)),
                ('ai_description', models.TextField(blank=True)),
                ('image_url', models.URLField(blank=True, max_length=1000)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('usage', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('organization', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='textures', to='core.organization')),
            ],
            options={
                'db_table': 'textures',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='TextureMaterialCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('material_category', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='texture_links', to='catalog.materialcategory')),
                ('texture', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='category_links', to='catalog.texture')),
            ],
            options={
                'db_table': 'texture_material_categories',
                'unique_together': {('texture', 'material_category')},
            },
        ),
        migrations.AddField(
            model_name='texture',
            name='categories',
            field=models.ManyToManyField(related_name='textures', through='catalog.TextureMaterialCategory', to='catalog.materialcategory'),
        ),
        migrations.AddIndex(
            model_name='texture',
            index=models.Index(fields=['-usage', '-created_at'], name='textures_usage_created_idx'),
        ),
        migrations.CreateModel(
            name='Style',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name_en', models.CharField(max_length=200)),
                ('name_he', models.CharField(max_length=200)),
                ('slug', models.SlugField(max_length=200, unique=True)),
                ('price_level', models.CharField(choices=[('REGULAR', 'Regular'), ('LUXURY', 'Luxury')], default='REGULAR', max_length=10)),
                ('material_guidance', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('organization', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='styles', to='core.organization')),
            ],
            options={
                'db_table': 'styles',
                'ordering': ['name_en'],
            },
        ),
        migrations.CreateModel(
            name='StyleTexture',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('style', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='texture_links', to='catalog.style')),
                ('texture', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='style_links', to='catalog.texture')),
            ],
            options={
                'db_table': 'style_textures',
                'ordering': ['created_at', 'id'],
                'unique_together': {('style', 'texture')},
            },
        ),
        migrations.AddField(
            model_name='style',
            name='textures',
            field=models.ManyToManyField(related_name='styles', through='catalog.StyleTexture', to='catalog.texture'),
        ),
    ]
