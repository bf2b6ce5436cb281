import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import core.models
import core.validators


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(blank=True, default='', help_text='Display name shown to other users.', max_length=255, verbose_name='name')),
                ('email', models.EmailField(error_messages={'unique': 'Email already registered.'}, help_text='Required. Used to sign in.', max_length=254, unique=True, verbose_name='email address')),
                ('username', models.CharField(help_text='Internal identifier, derived from the email address.', max_length=255, unique=True, verbose_name='username')),
                ('role', models.CharField(choices=[('buyer', 'Buyer'), ('seller', 'Seller'), ('both', 'Buyer & Seller')], default='buyer', help_text='Whether the user buys, sells, or both.', max_length=20, verbose_name='role')),
                ('phone', models.CharField(blank=True, default='', help_text='Optional contact phone number.', max_length=50, validators=[core.validators.validate_phone_number], verbose_name='phone')),
                ('avatar_url', models.URLField(blank=True, default='', help_text='Optional avatar image URL.', max_length=500, verbose_name='avatar url')),
                ('paid', models.BooleanField(default=False, help_text='Set once the one-time messaging unlock payment clears.', verbose_name='messaging unlocked')),
                ('paid_at', models.DateTimeField(blank=True, help_text='When the messaging unlock payment cleared.', null=True, verbose_name='paid at')),
                ('stripe_customer_id', models.CharField(blank=True, default='', max_length=255, verbose_name='stripe customer id')),
                ('stripe_payment_id', models.CharField(blank=True, default='', help_text='Payment reference of the unlock payment.', max_length=255, verbose_name='stripe payment id')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['role'], name='user_role_idx'),
                    models.Index(fields=['paid'], name='user_paid_idx'),
                ],
            },
            managers=[
                ('objects', core.models.AccountManager()),
            ],
        ),
        migrations.CreateModel(
            name='Listing',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('year', models.PositiveIntegerField(help_text='Model year of the coach', validators=[core.validators.validate_listing_year], verbose_name='year')),
                ('model', models.CharField(default='H3-45', max_length=100, verbose_name='model')),
                ('converter', models.CharField(help_text='Coach converter, e.g. Marathon or Liberty', max_length=100, verbose_name='converter')),
                ('num', models.CharField(blank=True, default='', max_length=50, verbose_name='coach number')),
                ('price', models.PositiveIntegerField(default=0, help_text='Asking price in USD, 0 when not disclosed', verbose_name='price')),
                ('price_display', models.CharField(blank=True, default='', max_length=50, verbose_name='price display')),
                ('mileage', models.CharField(blank=True, default='', max_length=50, verbose_name='mileage')),
                ('slides', models.CharField(blank=True, default='', max_length=50, verbose_name='slides')),
                ('engine', models.CharField(default='Volvo D13', max_length=100, verbose_name='engine')),
                ('length', models.CharField(default='45 ft', max_length=20, verbose_name='length')),
                ('color', models.CharField(blank=True, default='', max_length=100, verbose_name='color')),
                ('description', models.TextField(blank=True, default='', verbose_name='description')),
                ('tag', models.CharField(blank=True, default='', max_length=50, verbose_name='tag')),
                ('status', models.CharField(choices=[('active', 'Active'), ('sold', 'Sold'), ('pending', 'Pending'), ('draft', 'Draft')], default='active', help_text='Visibility and sale state of the listing', max_length=20, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('seller', models.ForeignKey(help_text='User selling this coach', on_delete=django.db.models.deletion.CASCADE, related_name='listings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'listing',
                'verbose_name_plural': 'listings',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['seller'], name='listing_seller_idx'),
                    models.Index(fields=['status'], name='listing_status_idx'),
                    models.Index(fields=['converter'], name='listing_converter_idx'),
                    models.Index(fields=['price'], name='listing_price_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ListingPhoto',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('url', models.URLField(max_length=1000, verbose_name='url')),
                ('sort_order', models.PositiveIntegerField(default=0, verbose_name='sort order')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('listing', models.ForeignKey(help_text='Listing this photo belongs to', on_delete=django.db.models.deletion.CASCADE, related_name='photos', to='core.listing')),
            ],
            options={
                'verbose_name': 'listing photo',
                'verbose_name_plural': 'listing photos',
                'ordering': ['sort_order', 'created_at'],
                'indexes': [
                    models.Index(fields=['listing', 'sort_order'], name='listing_photo_order_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Conversation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('listing', models.ForeignKey(help_text='Listing the conversation is about', on_delete=django.db.models.deletion.CASCADE, related_name='conversations', to='core.listing')),
                ('buyer', models.ForeignKey(help_text='User who opened the conversation', on_delete=django.db.models.deletion.CASCADE, related_name='buyer_conversations', to=settings.AUTH_USER_MODEL)),
                ('seller', models.ForeignKey(help_text='Seller of the listing at the time the conversation was opened', on_delete=django.db.models.deletion.CASCADE, related_name='seller_conversations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'conversation',
                'verbose_name_plural': 'conversations',
                'ordering': ['-updated_at'],
                'indexes': [
                    models.Index(fields=['buyer'], name='conversation_buyer_idx'),
                    models.Index(fields=['seller'], name='conversation_seller_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('listing', 'buyer'), name='unique_conversation_per_listing_buyer'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Message',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('text', models.TextField(verbose_name='text')),
                ('read', models.BooleanField(default=False, help_text='Whether the counterpart has viewed the message', verbose_name='read')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('conversation', models.ForeignKey(help_text='Conversation this message belongs to', on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='core.conversation')),
                ('sender', models.ForeignKey(help_text='User who wrote the message', on_delete=django.db.models.deletion.CASCADE, related_name='sent_messages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'message',
                'verbose_name_plural': 'messages',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['conversation', 'created_at'], name='message_conv_created_idx'),
                    models.Index(fields=['conversation', 'read'], name='message_conv_read_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SavedCoach',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saved_coaches', to=settings.AUTH_USER_MODEL)),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saved_by', to='core.listing')),
            ],
            options={
                'verbose_name': 'saved coach',
                'verbose_name_plural': 'saved coaches',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user'], name='saved_coach_user_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'listing'), name='unique_saved_coach_per_user'),
                ],
            },
        ),
    ]
