from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SMSCode',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('phone', models.TextField(unique=True)),
                ('code', models.CharField(max_length=8)),
                ('expires_at', models.DateTimeField()),
            ],
            options={'db_table': 'sms_codes'},
        ),
    ]
