# Initial migration for articles and review votes

from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Article',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('title', models.CharField(help_text='Article headline', max_length=255, verbose_name='Title')),
                ('body', models.TextField(help_text='Article content', verbose_name='Body')),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('in_review', 'In Review'), ('published', 'Published'), ('observed', 'Observed')], db_index=True, default='draft', help_text='Current workflow state', max_length=20, verbose_name='Status')),
                ('approval_percentage', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Sum of approving role weights in the current review cycle', max_digits=5, verbose_name='Approval Percentage')),
                ('review_cycle', models.PositiveIntegerField(default=0, help_text='Incremented each time the article is sent to review', verbose_name='Review Cycle')),
                ('author', models.ForeignKey(help_text='Staff member who wrote the article', on_delete=django.db.models.deletion.CASCADE, related_name='articles', to=settings.AUTH_USER_MODEL, verbose_name='Author')),
            ],
            options={
                'verbose_name': 'Article',
                'verbose_name_plural': 'Articles',
                'db_table': 'articles',
                'ordering': ['-updated_at'],
                'indexes': [
                    models.Index(fields=['status', 'updated_at'], name='articles_status_updated_idx'),
                    models.Index(fields=['author', 'created_at'], name='articles_author_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ArticleVote',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('voter_id', models.CharField(db_index=True, max_length=64, verbose_name='Voter ID')),
                ('voter_username', models.CharField(max_length=150, verbose_name='Voter Username')),
                ('role_id', models.CharField(max_length=64, verbose_name='Role ID')),
                ('role_name', models.CharField(max_length=50, verbose_name='Role Name')),
                ('role_weight', models.DecimalField(decimal_places=2, help_text='Approval weight of the role at the time of the vote', max_digits=5, verbose_name='Role Weight')),
                ('decision', models.CharField(choices=[('APPROVED', 'Approved'), ('REJECTED', 'Rejected')], max_length=10, verbose_name='Decision')),
                ('comment', models.TextField(blank=True, default='', verbose_name='Comment')),
                ('review_cycle', models.PositiveIntegerField(default=0, verbose_name='Review Cycle')),
                ('article', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='votes', to='articles.article', verbose_name='Article')),
            ],
            options={
                'verbose_name': 'Article Vote',
                'verbose_name_plural': 'Article Votes',
                'db_table': 'article_votes',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['article', 'created_at'], name='votes_article_created_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('article', 'role_id', 'review_cycle'), name='unique_vote_per_role_per_cycle'),
                ],
            },
        ),
    ]
