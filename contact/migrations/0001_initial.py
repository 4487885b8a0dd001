from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ContactFormSubmission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('full_name', models.CharField(db_column='fullname', help_text='Name of the person contacting us', max_length=255)),
                ('email', models.CharField(help_text='Email address for follow-up', max_length=255)),
                ('phone', models.CharField(help_text='Contact phone number', max_length=50)),
                ('enquiry_type', models.CharField(db_column='enquiryType', help_text='Category of the enquiry', max_length=100)),
                ('message', models.TextField(help_text='The message content, HTML-escaped')),
                ('submitted_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='When the message was submitted')),
            ],
            options={
                'verbose_name': 'Contact Form Submission',
                'verbose_name_plural': 'Contact Form Submissions',
                'db_table': 'contact_form',
                'ordering': ['-submitted_at'],
                'indexes': [models.Index(fields=['email'], name='contact_form_email_idx')],
            },
        ),
    ]
