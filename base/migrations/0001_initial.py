# Initial schema: users, teams, memberships and invitations

import uuid
from django.conf import settings
from django.db import migrations, models
import django.core.validators
import django.db.models.deletion
import django.utils.timezone

import base.manager


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
                ('is_superuser', models.BooleanField(
                    default=False,
                    help_text='Designates that this user has all permissions without explicitly assigning them.',
                    verbose_name='superuser status',
                )),
                ('id', models.UUIDField(
                    default=uuid.uuid4,
                    editable=False,
                    help_text='Unique identifier for the user',
                    primary_key=True,
                    serialize=False,
                )),
                ('email', models.EmailField(
                    error_messages={'unique': 'A user with that email already exists.'},
                    help_text='Required. Enter a valid email address.',
                    max_length=255,
                    unique=True,
                    verbose_name='email address',
                )),
                ('username', models.CharField(
                    error_messages={'unique': 'A user with that username already exists.'},
                    help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.',
                    max_length=150,
                    unique=True,
                    validators=[django.core.validators.RegexValidator(
                        message='Enter a valid username. This value may contain only letters, numbers, and @/./+/-/_ characters.',
                        regex='^[\\w.@+-]+$',
                    )],
                    verbose_name='username',
                )),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_active', models.BooleanField(
                    default=True,
                    help_text='Designates whether this user should be treated as active. '
                              'Unselect this instead of deleting accounts.',
                    verbose_name='active',
                )),
                ('is_staff', models.BooleanField(
                    default=False,
                    help_text='Designates whether the user can log into this admin site.',
                    verbose_name='staff status',
                )),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('groups', models.ManyToManyField(
                    blank=True,
                    help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.',
                    related_name='user_set',
                    related_query_name='user',
                    to='auth.group',
                    verbose_name='groups',
                )),
                ('user_permissions', models.ManyToManyField(
                    blank=True,
                    help_text='Specific permissions for this user.',
                    related_name='user_set',
                    related_query_name='user',
                    to='auth.permission',
                    verbose_name='user permissions',
                )),
            ],
            options={
                'verbose_name': 'User',
                'verbose_name_plural': 'Users',
            },
            managers=[
                ('objects', base.manager.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Team',
            fields=[
                ('id', models.UUIDField(
                    default=uuid.uuid4,
                    editable=False,
                    help_text='Unique identifier for the team',
                    primary_key=True,
                    serialize=False,
                )),
                ('name', models.CharField(help_text='Name of the team', max_length=255, verbose_name='team name')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('owner', models.ForeignKey(
                    help_text='User who owns this team and can invite/remove members',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='owned_teams',
                    to=settings.AUTH_USER_MODEL,
                    verbose_name='team owner',
                )),
            ],
            options={
                'verbose_name': 'Team',
                'verbose_name_plural': 'Teams',
                'ordering': ['name', 'created_at'],
                'indexes': [models.Index(fields=['name'], name='base_team_name_idx')],
            },
        ),
        migrations.CreateModel(
            name='Membership',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(max_length=50, verbose_name='role')),
                ('invitation_id', models.UUIDField(blank=True, editable=False, null=True, verbose_name='invitation')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='joined at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('team', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='memberships',
                    to='base.team',
                    verbose_name='team',
                )),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='memberships',
                    to=settings.AUTH_USER_MODEL,
                    verbose_name='user',
                )),
            ],
            options={
                'verbose_name': 'Team membership',
                'verbose_name_plural': 'Team memberships',
                'ordering': ['created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('team', 'user'), name='unique_membership_per_team_user'),
                ],
            },
        ),
        migrations.AddField(
            model_name='team',
            name='members',
            field=models.ManyToManyField(
                blank=True,
                help_text='Users who joined this team (the owner is not listed)',
                related_name='teams',
                through='base.Membership',
                to=settings.AUTH_USER_MODEL,
                verbose_name='team members',
            ),
        ),
        migrations.CreateModel(
            name='TeamInvitation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('email', models.EmailField(max_length=255, verbose_name='invitee email')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('invited_by', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='sent_team_invitations',
                    to=settings.AUTH_USER_MODEL,
                    verbose_name='invited by',
                )),
                ('team', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='invitations',
                    to='base.team',
                    verbose_name='team',
                )),
            ],
            options={
                'verbose_name': 'Team invitation',
                'verbose_name_plural': 'Team invitations',
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('team', 'email'), name='unique_invitation_per_team_email'),
                ],
            },
        ),
        migrations.AddField(
            model_name='user',
            name='current_team',
            field=models.ForeignKey(
                blank=True,
                help_text='Team whose context is active for this user',
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name='current_users',
                to='base.team',
                verbose_name='current team',
            ),
        ),
    ]
