from django.db import migrations, models


def populate_tags_text(apps, schema_editor):
    Product = apps.get_model('marketplace', 'Product')
    for product in Product.objects.iterator():
        product.tags_text = '\n'.join(product.tags or [])
        product.save(update_fields=['tags_text'])


class Migration(migrations.Migration):

    dependencies = [
        ('marketplace', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='product',
            name='tags_text',
            field=models.TextField(blank=True, default='', editable=False),
        ),
        migrations.RunPython(populate_tags_text, migrations.RunPython.noop),
    ]
