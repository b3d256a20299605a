import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Folder',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('modified_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='folders', to=settings.AUTH_USER_MODEL)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name='subfolders', to='drive.folder')),
            ],
            options={
                'verbose_name': 'Folder',
                'verbose_name_plural': 'Folders',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['owner', 'parent'], name='folders_owner_parent_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'parent', 'name'), name='folders_owner_parent_name_unique'),
                    models.UniqueConstraint(condition=models.Q(('parent__isnull', True)), fields=('owner', 'name'), name='folders_owner_root_name_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('size', models.BigIntegerField(help_text='File size in bytes')),
                ('content_type', models.CharField(choices=[('image', 'Image'), ('document', 'Document'), ('spreadsheet', 'Spreadsheet'), ('pdf', 'PDF'), ('code', 'Code'), ('word', 'Word'), ('other', 'Other')], default='other', max_length=16)),
                ('mime_type', models.CharField(default='application/octet-stream', max_length=255)),
                ('blob_key', models.CharField(db_index=True, help_text='Key of the content in the blob store', max_length=1024)),
                ('url', models.URLField(blank=True, default='', max_length=2048)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('modified_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='drive_files', to=settings.AUTH_USER_MODEL)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name='files', to='drive.folder')),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['owner', 'parent'], name='files_owner_parent_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'parent', 'name'), name='files_owner_parent_name_unique'),
                    models.UniqueConstraint(condition=models.Q(('parent__isnull', True)), fields=('owner', 'name'), name='files_owner_root_name_unique'),
                    models.CheckConstraint(condition=models.Q(('size__gte', 0)), name='files_size_non_negative'),
                ],
            },
        ),
    ]
